"""Tests for vendure_sdk.custom_fields.CustomField factories and fragments."""

import pytest

from vendure_sdk.custom_fields import CustomField, FieldKind


def test_extended_asset_fragment():
    field = CustomField.extended_asset("mainUsdzAsset", ["Product", "ProductVariant"])
    assert field.field_name == "mainUsdzAsset"
    assert field.kind is FieldKind.EXTENDED_ASSET
    assert field.graphql_fragment == "mainUsdzAsset { id name type mimeType source preview }"
    assert field.applicable_types == ("Product", "ProductVariant")
    assert field.is_extended_field is True


def test_extended_asset_detailed_fragment():
    field = CustomField.extended_asset_detailed("heroAsset", ["Collection"])
    fragment = field.graphql_fragment
    assert fragment.startswith("heroAsset { id name type mimeType source preview")
    assert "width height fileSize" in fragment
    assert "focalPoint { x y }" in fragment
    assert "tags { id value }" in fragment
    assert fragment.count("{") == fragment.count("}")


def test_extended_scalar_is_bare_name():
    field = CustomField.extended_scalar("calculatedScore", ["Product"])
    assert field.graphql_fragment == "calculatedScore"
    assert field.is_extended_field is True


def test_extended_relation_fragment():
    field = CustomField.extended_relation("brand", ["id", "name", "logo"], ["Product"])
    assert field.graphql_fragment == "brand { id name logo }"


def test_extended_relation_default_sub_fields():
    field = CustomField.extended_relation("brand", applicable_types=["Product"])
    assert field.graphql_fragment == "brand { id name }"


def test_extended_complex_relation_keeps_key_order():
    field = CustomField.extended_complex_relation(
        "bundle",
        {"items": ["id", "sku", "quantity"], "pricing": ["total", "currency"], "label": []},
        ["Product"],
    )
    assert field.graphql_fragment == "bundle { items { id sku quantity } pricing { total currency } label }"


def test_vendure_custom_field_is_native():
    field = CustomField.vendure_custom_field("priority", ["Order"])
    assert field.field_name == "priority"
    assert field.kind is FieldKind.NATIVE_CUSTOM_FIELD
    assert field.is_extended_field is False
    assert field.native_names == ["priority"]
    assert field.graphql_fragment == "customFields { priority }"


def test_vendure_custom_fields_group():
    field = CustomField.vendure_custom_fields(["priority", "internalNotes"], ["Order"])
    assert field.field_name == "customFields"
    assert field.kind is FieldKind.NATIVE_CUSTOM_FIELD_GROUP
    assert field.native_names == ["priority", "internalNotes"]
    assert field.graphql_fragment == "customFields { priority internalNotes }"


def test_extended_fields_have_no_native_names():
    assert CustomField.extended_scalar("score", ["Product"]).native_names == []


def test_specs_are_immutable():
    field = CustomField.extended_scalar("score", ["Product"])
    with pytest.raises(Exception):
        field.field_name = "other"


def test_applies_to():
    field = CustomField.extended_scalar("score", ["Product", "ProductVariant"])
    assert field.applies_to("Product")
    assert field.applies_to("ProductVariant")
    assert not field.applies_to("Order")


def test_describe():
    assert CustomField.extended_scalar("score", ["Product", "Order"]).describe() == "[Extended] score -> [Product, Order]"
    assert CustomField.vendure_custom_field("priority", ["Order"]).describe() == "[CustomField] priority -> [Order]"
