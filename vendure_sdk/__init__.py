"""
vendure-sdk — Python client for the Vendure e-commerce Shop API (GraphQL).

This package provides the client and its extension points:

  session.py          Vendure: the SDK session handle (entry point)
  custom_fields.py    CustomField specs for extra GraphQL fields
  configuration.py    VendureConfiguration: spec registry and fragment injection
  extended_fields.py  ExtendedFieldStore: values captured at decode time
  json_values.py      RawJSON and strict conversion of untyped JSON values
  token_manager.py    TokenManager: session token with single-flight refresh
  transport.py        GraphQLTransport: HTTP POST and envelope handling
  dispatcher.py       OperationDispatcher: execute, extract, decode, extend
  operations.py       Built-in operation groups (auth, catalog, order, ...)
  queries.py          Query builders and fixed mutation texts
  models.py           Minimal pydantic decode targets and inputs
  errors.py           VendureError taxonomy
  settings.py         DEFAULT_SETTINGS and .env loading
  logging_config.py   Category loggers and logging presets

Install with: pip install -e . (from the repository root)
"""

from .configuration import VendureConfiguration
from .custom_fields import CustomField, FieldKind
from .errors import (
    AuthenticationError,
    DecodingError,
    GraphQLError,
    HttpError,
    InitializationError,
    NetworkError,
    NoDataError,
    OrderModificationError,
    TokenMissingError,
    VendureError,
)
from .extended_fields import ExtendedFieldStore
from .json_values import RawJSON
from .logging_config import configure_logging
from .models import (
    Address,
    Asset,
    AssetType,
    Collection,
    CollectionList,
    CreateAddressInput,
    Customer,
    Order,
    Product,
    ProductList,
    ProductVariant,
    ProductVariantList,
    RegisterCustomerInput,
    UpdateAddressInput,
    VendureEntity,
)
from .session import Vendure
from .token_manager import TokenManager, TokenState
from .transport import GraphQLEnvelope, GraphQLTransport
