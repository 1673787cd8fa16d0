"""Tests for vendure_sdk.models."""

import pytest
from pydantic import ValidationError

from vendure_sdk.configuration import VendureConfiguration
from vendure_sdk.custom_fields import CustomField
from vendure_sdk.extended_fields import ExtendedFieldStore
from vendure_sdk.models import Asset, CreateAddressInput, Order, Product, UpdateAddressInput

USDZ_ASSET = {
    "id": "a1",
    "name": "chair.usdz",
    "type": "BINARY",
    "mimeType": "model/vnd.usdz+zip",
    "source": "https://cdn.example.com/chair.usdz",
    "preview": "https://cdn.example.com/chair.png",
}


def test_unknown_keys_are_kept():
    product = Product.model_validate({"id": "1", "name": "Chair", "calculatedScore": 4.5})
    assert product.unknown_fields == {"calculatedScore": 4.5}
    assert product.get_extended_field("calculatedScore", float) == 4.5


def test_snake_case_and_aliases_both_accepted():
    assert Order.model_validate({"id": "1", "totalWithTax": 100}).total_with_tax == 100
    assert Order(id="1", total_with_tax=100).total_with_tax == 100


def test_extended_field_from_store_first():
    configuration = VendureConfiguration([CustomField.extended_scalar("calculatedScore", ["Product"])])
    store = ExtendedFieldStore()
    store.populate("Product", "1", {"calculatedScore": 9.0}, configuration)
    product = Product.model_validate({"id": "1", "calculatedScore": 4.5})
    product.bind_extended_fields(store)

    assert product.get_extended_field("calculatedScore", float) == 9.0


def test_falls_back_to_native_custom_fields():
    product = Product.model_validate({"id": "1", "customFields": {"warrantyMonths": 24}})
    assert product.get_extended_field("warrantyMonths", int) == 24
    assert product.has_extended_field("warrantyMonths") is True


def test_native_custom_fields_as_json_string():
    product = Product.model_validate({"id": "1", "customFields": "{\"warrantyMonths\": 12}"})
    assert product.get_custom_field("warrantyMonths", int) == 12
    assert product.has_custom_field("warrantyMonths") is True
    assert product.get_custom_field("missing", int) is None


def test_missing_extended_field_is_none():
    product = Product.model_validate({"id": "1"})
    assert product.get_extended_field("calculatedScore", float) is None
    assert product.has_extended_field("calculatedScore") is False


def test_type_mismatch_in_extra_field_is_none():
    product = Product.model_validate({"id": "1", "calculatedScore": "high"})
    assert product.get_extended_field("calculatedScore", float) is None


def test_supports_ar():
    product = Product.model_validate({"id": "1", "mainUsdzAsset": USDZ_ASSET})
    assert product.main_usdz_asset.id == "a1"
    assert product.supports_ar is True
    assert product.ar_asset_url == "https://cdn.example.com/chair.usdz"

    plain = Product.model_validate({"id": "2"})
    assert plain.supports_ar is False
    assert plain.ar_asset_url is None


def test_asset_requires_core_fields():
    with pytest.raises(ValidationError):
        Asset.model_validate({"id": "a1", "name": "x"})


def test_create_address_input_omits_unset_fields():
    address = CreateAddressInput(
        street_line1="Main Street 1",
        city="Berlin",
        postal_code="10115",
        country_code="DE",
        default_shipping_address=True,
    )
    assert address.to_variables() == {
        "streetLine1": "Main Street 1",
        "city": "Berlin",
        "postalCode": "10115",
        "countryCode": "DE",
        "defaultShippingAddress": True,
    }


def test_create_address_input_sends_explicit_null():
    address = CreateAddressInput(
        street_line1="Main Street 1", city="Berlin", postal_code="10115", country_code="DE", company=None,
    )
    assert address.to_variables()["company"] is None


def test_input_round_trip():
    variables = {
        "streetLine1": "Main Street 1",
        "city": "Berlin",
        "postalCode": "10115",
        "countryCode": "DE",
        "customFields": {"doorCode": "42"},
    }
    assert CreateAddressInput.model_validate(variables).to_variables() == variables


def test_inputs_reject_unknown_keys():
    with pytest.raises(ValidationError):
        UpdateAddressInput(id="1", unknown="x")
