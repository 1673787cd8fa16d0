"""
Operations — Built-in operation groups exposed on a Vendure session.

  AuthOperations      login and Firebase authenticate, and the
                      token getters used as TokenManager fetchers
  CatalogOperations   products and collections by id, slug, or paginated list
  OrderOperations     the active order, adding items
  CustomerOperations  the active customer, address creation
  CustomOperations    caller-supplied operation text, path and type

Every group goes through the session's OperationDispatcher, so results are
decoded, and configured extra fields are captured, the same way for
built-in and custom operations.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from .configuration import VendureConfiguration
from .dispatcher import OperationDispatcher
from .errors import AuthenticationError, OrderModificationError
from .logging_config import AUTH, GENERAL, get_logger
from .models import (
    Address,
    Collection,
    CollectionList,
    CreateAddressInput,
    CurrentUser,
    Customer,
    Order,
    Product,
    ProductList,
)
from .queries import (
    CREATE_CUSTOMER_ADDRESS_MUTATION,
    FIREBASE_AUTHENTICATE_MUTATION,
    LOGIN_MUTATION,
    build_active_customer_query,
    build_active_order_query,
    build_add_item_to_order_mutation,
    build_collection_list_query,
    build_product_query,
    build_single_collection_query,
    build_single_product_query,
)

logger = get_logger(AUTH)
order_logger = get_logger(GENERAL)

T = TypeVar("T")

AUTH_TOKEN_HEADER = "vendure-auth-token"


class AuthOperations:
    """Authentication mutations.

    The dispatcher given here must not attach an Authorization header
    obtained from a TokenManager whose fetcher calls back into this class.
    """

    def __init__(self, dispatcher: OperationDispatcher):
        self.dispatcher = dispatcher

    def _authenticate(self, mutation: str, variables: Dict[str, Any], path: str):
        envelope = self.dispatcher.execute(mutation, variables)
        result = (envelope.data or {}).get(path) or {}
        if result.get("__typename") != "CurrentUser":
            message = result.get("message") or "Authentication failed"
            logger.error("Authentication rejected: %s", message)
            raise AuthenticationError(message)
        return CurrentUser.model_validate(result), envelope.headers.get(AUTH_TOKEN_HEADER)

    def login(self, username: str, password: str, remember_me: bool = False) -> CurrentUser:
        user, _ = self._authenticate(
            LOGIN_MUTATION,
            {"username": username, "password": password, "rememberMe": remember_me},
            "login",
        )
        return user

    def authenticate_firebase(self, uid: str, jwt: str) -> CurrentUser:
        user, _ = self._authenticate(FIREBASE_AUTHENTICATE_MUTATION, {"uid": uid, "jwt": jwt}, "authenticate")
        return user

    def get_token(self, username: str, password: str) -> Optional[str]:
        """Log in and return the session token from the response header."""
        _, token = self._authenticate(
            LOGIN_MUTATION,
            {"username": username, "password": password, "rememberMe": False},
            "login",
        )
        return token

    def get_token_firebase(self, uid: str, jwt: str) -> Optional[str]:
        _, token = self._authenticate(FIREBASE_AUTHENTICATE_MUTATION, {"uid": uid, "jwt": jwt}, "authenticate")
        return token


class CatalogOperations:
    def __init__(self, dispatcher: OperationDispatcher, configuration: VendureConfiguration):
        self.dispatcher = dispatcher
        self.configuration = configuration

    def get_product_by_id(self, product_id: str, include_custom_fields: Optional[bool] = None) -> Optional[Product]:
        query = build_single_product_query(self.configuration, by_id=True, include_custom_fields=include_custom_fields)
        return self.dispatcher.query(query, {"id": product_id}, "product", Product, allow_null=True)

    def get_product_by_slug(self, slug: str, include_custom_fields: Optional[bool] = None) -> Optional[Product]:
        query = build_single_product_query(self.configuration, by_id=False, include_custom_fields=include_custom_fields)
        return self.dispatcher.query(query, {"slug": slug}, "product", Product, allow_null=True)

    def get_products(
        self,
        options: Optional[Dict[str, Any]] = None,
        include_custom_fields: Optional[bool] = None,
    ) -> ProductList:
        query = build_product_query(self.configuration, include_custom_fields=include_custom_fields)
        variables = {"options": options} if options else None
        return self.dispatcher.query(query, variables, "products", ProductList)

    def get_collections(
        self,
        options: Optional[Dict[str, Any]] = None,
        include_custom_fields: Optional[bool] = None,
        detailed: bool = False,
    ) -> CollectionList:
        query = build_collection_list_query(self.configuration, include_custom_fields, detailed)
        variables = {"options": options} if options else None
        return self.dispatcher.query(query, variables, "collections", CollectionList)

    def get_collection_by_id(
        self,
        collection_id: str,
        include_custom_fields: Optional[bool] = None,
        include_products: bool = False,
    ) -> Optional[Collection]:
        query = build_single_collection_query(
            self.configuration, by_id=True,
            include_custom_fields=include_custom_fields, include_products=include_products,
        )
        return self.dispatcher.query(query, {"id": collection_id}, "collection", Collection, allow_null=True)

    def get_collection_by_slug(
        self,
        slug: str,
        include_custom_fields: Optional[bool] = None,
        include_products: bool = False,
    ) -> Optional[Collection]:
        query = build_single_collection_query(
            self.configuration, by_id=False,
            include_custom_fields=include_custom_fields, include_products=include_products,
        )
        return self.dispatcher.query(query, {"slug": slug}, "collection", Collection, allow_null=True)


class OrderOperations:
    def __init__(self, dispatcher: OperationDispatcher, configuration: VendureConfiguration):
        self.dispatcher = dispatcher
        self.configuration = configuration

    def get_active_order(self, include_custom_fields: Optional[bool] = None) -> Optional[Order]:
        query = build_active_order_query(self.configuration, include_custom_fields)
        return self.dispatcher.query(query, expected_path="activeOrder", result_type=Order, allow_null=True)

    def add_item_to_order(
        self,
        product_variant_id: str,
        quantity: int,
        include_custom_fields: Optional[bool] = None,
    ) -> Order:
        """Add a variant to the active order and return the updated order.

        Raises:
            OrderModificationError: The server answered with an ErrorResult
                                    (insufficient stock, order limit, ...).
        """
        mutation = build_add_item_to_order_mutation(self.configuration, include_custom_fields)
        raw = self.dispatcher.mutate(
            mutation,
            {"productVariantId": product_variant_id, "quantity": quantity},
            "addItemToOrder",
        )
        typename = raw.get("__typename")
        if typename != "Order":
            message = raw.get("message") or "Failed to add item to order"
            order_logger.warning("addItemToOrder rejected (%s): %s", typename, message)
            raise OrderModificationError(raw.get("errorCode"), message, typename, raw)
        return self.dispatcher.decode(raw, Order)


class CustomerOperations:
    def __init__(self, dispatcher: OperationDispatcher, configuration: VendureConfiguration):
        self.dispatcher = dispatcher
        self.configuration = configuration

    def get_active_customer(self, include_custom_fields: Optional[bool] = None) -> Optional[Customer]:
        query = build_active_customer_query(self.configuration, include_custom_fields)
        return self.dispatcher.query(query, expected_path="activeCustomer", result_type=Customer, allow_null=True)

    def create_customer_address(self, address: CreateAddressInput) -> Address:
        return self.dispatcher.mutate(
            CREATE_CUSTOMER_ADDRESS_MUTATION,
            {"input": address.to_variables()},
            "createCustomerAddress",
            Address,
        )


class CustomOperations:
    """Run application-supplied operations through the typed pipeline.

    Example:
        product = vendure.custom.query(
            "query($id: ID!) { product(id: $id) { id name calculatedScore } }",
            variables={"id": "1"},
            expected_path="product",
            result_type=Product,
        )
        product.get_extended_field("calculatedScore", float)
    """

    def __init__(self, dispatcher: OperationDispatcher):
        self.dispatcher = dispatcher

    def query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
    ) -> T:
        return self.dispatcher.query(query, variables, expected_path, result_type, operation_name)

    def mutate(
        self,
        mutation: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
    ) -> T:
        return self.dispatcher.mutate(mutation, variables, expected_path, result_type, operation_name)

    def query_list(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
    ) -> List[T]:
        return self.dispatcher.query_list(query, variables, expected_path, result_type, operation_name)

    def mutate_list(
        self,
        mutation: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
    ) -> List[T]:
        return self.dispatcher.mutate_list(mutation, variables, expected_path, result_type, operation_name)
