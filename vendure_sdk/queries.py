"""
GraphQL Query Definitions — Operation texts used by the built-in operations.

Query builders take the session's VendureConfiguration and splice the
configured extra fields for each entity type just before the closing brace
of that entity's selection set:

    product(id: $id) {
      id
      name
      ...
      variants {
        id
        ...
        <injected ProductVariant fields>
      }
      <injected Product fields>
    }

include_custom_fields follows VendureConfiguration.should_include_custom_fields:
None means "inject when anything is configured for the type", True/False
force it. Mutations with fixed shapes are plain constants.
"""

from typing import Optional, Sequence

from .configuration import VendureConfiguration

CONNECTION_CHECK_QUERY = "query { __typename }"

PRODUCT_BASE_FIELDS = ("id", "name", "slug", "description", "enabled")

ASSET_FIELDS = ("id", "name", "type", "mimeType", "source", "preview")

VARIANT_BASE_FIELDS = (
    "id", "name", "sku", "price", "priceWithTax", "currencyCode", "stockLevel", "enabled",
)


def _indent(text: str, spaces: int) -> str:
    pad = " " * spaces
    return "\n".join(pad + line if line.strip() else line for line in text.splitlines())


def _injected(configuration: VendureConfiguration, type_name: str,
              include_custom_fields: Optional[bool], spaces: int) -> str:
    if not configuration.should_include_custom_fields(type_name, include_custom_fields):
        return ""
    fragment = configuration.inject_fields(type_name)
    return "\n" + _indent(fragment, spaces) if fragment else ""


def _fields(names: Sequence[str], spaces: int) -> str:
    return "\n".join(" " * spaces + name for name in names)


def _block(name: str, names: Sequence[str], spaces: int) -> str:
    pad = " " * spaces
    return f"{pad}{name} {{\n{_fields(names, spaces + 2)}\n{pad}}}"


def _product_selection(configuration: VendureConfiguration,
                       include_custom_fields: Optional[bool],
                       base_fields: Sequence[str], spaces: int) -> str:
    variant_fields = _fields(VARIANT_BASE_FIELDS, spaces + 2)
    variant_extra = _injected(configuration, "ProductVariant", include_custom_fields, spaces + 2)
    product_extra = _injected(configuration, "Product", include_custom_fields, spaces)
    return (
        f"{_fields(base_fields, spaces)}\n"
        f"{_block('featuredAsset', ASSET_FIELDS, spaces)}\n"
        f"{' ' * spaces}variants {{\n"
        f"{variant_fields}{variant_extra}\n"
        f"{' ' * spaces}}}{product_extra}"
    )


def build_single_product_query(
    configuration: VendureConfiguration,
    by_id: bool = True,
    include_custom_fields: Optional[bool] = None,
    base_fields: Sequence[str] = PRODUCT_BASE_FIELDS,
) -> str:
    """Query for one product by id ("product" path) or by slug."""
    parameter = "id" if by_id else "slug"
    parameter_type = "ID!" if by_id else "String!"
    selection = _product_selection(configuration, include_custom_fields, base_fields, 4)
    return (
        f"query product(${parameter}: {parameter_type}) {{\n"
        f"  product({parameter}: ${parameter}) {{\n"
        f"{selection}\n"
        f"  }}\n"
        f"}}\n"
    )


def build_product_query(
    configuration: VendureConfiguration,
    include_custom_fields: Optional[bool] = None,
    base_fields: Sequence[str] = PRODUCT_BASE_FIELDS,
) -> str:
    """Paginated product list ("products" path, ProductList shape)."""
    selection = _product_selection(configuration, include_custom_fields, base_fields, 6)
    return (
        "query products($options: ProductListOptions) {\n"
        "  products(options: $options) {\n"
        "    items {\n"
        f"{selection}\n"
        "    }\n"
        "    totalItems\n"
        "  }\n"
        "}\n"
    )


def build_active_order_query(
    configuration: VendureConfiguration,
    include_custom_fields: Optional[bool] = None,
) -> str:
    extra = _injected(configuration, "Order", include_custom_fields, 4)
    return (
        "query activeOrder {\n"
        "  activeOrder {\n"
        "    id\n"
        "    code\n"
        "    state\n"
        "    active\n"
        "    totalQuantity\n"
        "    subTotalWithTax\n"
        "    totalWithTax\n"
        "    currencyCode\n"
        "    lines {\n"
        "      id\n"
        "      quantity\n"
        "      unitPriceWithTax\n"
        "      linePriceWithTax\n"
        "      productVariant {\n"
        "        id\n"
        "        name\n"
        "        sku\n"
        "      }\n"
        f"    }}{extra}\n"
        "  }\n"
        "}\n"
    )


def build_active_customer_query(
    configuration: VendureConfiguration,
    include_custom_fields: Optional[bool] = None,
) -> str:
    extra = _injected(configuration, "Customer", include_custom_fields, 4)
    return (
        "query activeCustomer {\n"
        "  activeCustomer {\n"
        "    id\n"
        "    title\n"
        "    firstName\n"
        "    lastName\n"
        "    emailAddress\n"
        f"    phoneNumber{extra}\n"
        "  }\n"
        "}\n"
    )


COLLECTION_BASE_FIELDS = ("id", "name", "slug", "description")

COLLECTION_DETAIL_FIELDS = ("position", "isRoot", "parentId")


def _collection_selection(configuration: VendureConfiguration,
                          include_custom_fields: Optional[bool],
                          detailed: bool, include_products: bool, spaces: int) -> str:
    pad = " " * spaces
    parts = [_fields(COLLECTION_BASE_FIELDS, spaces)]
    if detailed:
        parts.append(_block("breadcrumbs", ("id", "name", "slug"), spaces))
        parts.append(_fields(COLLECTION_DETAIL_FIELDS, spaces))
    parts.append(_block("parent", ("id", "name"), spaces))
    parts.append(_block("children", ("id", "name", "slug"), spaces))
    parts.append(_block("featuredAsset", ASSET_FIELDS, spaces))
    if include_products:
        inner = " " * (spaces + 4)
        variant_extra = _injected(configuration, "ProductVariant", include_custom_fields, spaces + 4)
        parts.append(
            f"{pad}productVariants {{\n"
            f"{pad}  items {{\n"
            f"{_fields(VARIANT_BASE_FIELDS, spaces + 4)}\n"
            f"{inner}product {{\n"
            f"{_fields(('id', 'name', 'slug'), spaces + 6)}\n"
            f"{_block('featuredAsset', ASSET_FIELDS, spaces + 6)}\n"
            f"{inner}}}{variant_extra}\n"
            f"{pad}  }}\n"
            f"{pad}  totalItems\n"
            f"{pad}}}"
        )
    collection_extra = _injected(configuration, "Collection", include_custom_fields, spaces)
    return "\n".join(parts) + collection_extra


def build_collection_list_query(
    configuration: VendureConfiguration,
    include_custom_fields: Optional[bool] = None,
    detailed: bool = False,
) -> str:
    """Paginated collection list ("collections" path, CollectionList shape).

    detailed adds breadcrumbs, position, isRoot and parentId.
    """
    selection = _collection_selection(configuration, include_custom_fields, detailed, False, 6)
    return (
        "query collections($options: CollectionListOptions) {\n"
        "  collections(options: $options) {\n"
        "    items {\n"
        f"{selection}\n"
        "    }\n"
        "    totalItems\n"
        "  }\n"
        "}\n"
    )


def build_single_collection_query(
    configuration: VendureConfiguration,
    by_id: bool = True,
    include_custom_fields: Optional[bool] = None,
    include_products: bool = False,
) -> str:
    """Query for one collection by id ("collection" path) or by slug.

    include_products adds the collection's product variants, each with its
    parent product.
    """
    parameter = "id" if by_id else "slug"
    parameter_type = "ID!" if by_id else "String!"
    selection = _collection_selection(configuration, include_custom_fields, True, include_products, 4)
    return (
        f"query collection(${parameter}: {parameter_type}) {{\n"
        f"  collection({parameter}: ${parameter}) {{\n"
        f"{selection}\n"
        f"  }}\n"
        f"}}\n"
    )


def build_add_item_to_order_mutation(
    configuration: VendureConfiguration,
    include_custom_fields: Optional[bool] = None,
) -> str:
    """addItemToOrder returning the Order or one of its ErrorResult types."""
    variant_extra = _injected(configuration, "ProductVariant", include_custom_fields, 10)
    order_extra = _injected(configuration, "Order", include_custom_fields, 6)
    return (
        "mutation addItemToOrder($productVariantId: ID!, $quantity: Int!) {\n"
        "  addItemToOrder(productVariantId: $productVariantId, quantity: $quantity) {\n"
        "    __typename\n"
        "    ... on Order {\n"
        "      id\n"
        "      code\n"
        "      state\n"
        "      active\n"
        "      lines {\n"
        "        id\n"
        "        quantity\n"
        "        linePrice\n"
        "        linePriceWithTax\n"
        "        productVariant {\n"
        "          id\n"
        "          name\n"
        "          price\n"
        "          priceWithTax\n"
        f"          sku{variant_extra}\n"
        "        }\n"
        "      }\n"
        "      totalQuantity\n"
        "      subTotal\n"
        "      subTotalWithTax\n"
        "      shipping\n"
        "      shippingWithTax\n"
        "      total\n"
        "      totalWithTax\n"
        f"      currencyCode{order_extra}\n"
        "    }\n"
        "    ... on ErrorResult {\n"
        "      errorCode\n"
        "      message\n"
        "    }\n"
        "    ... on InsufficientStockError {\n"
        "      quantityAvailable\n"
        "    }\n"
        "    ... on OrderLimitError {\n"
        "      maxItems\n"
        "    }\n"
        "  }\n"
        "}\n"
    )


LOGIN_MUTATION = """
mutation login($username: String!, $password: String!, $rememberMe: Boolean) {
  login(username: $username, password: $password, rememberMe: $rememberMe) {
    __typename
    ... on CurrentUser {
      id
      identifier
    }
    ... on ErrorResult {
      errorCode
      message
    }
  }
}
"""

FIREBASE_AUTHENTICATE_MUTATION = """
mutation authenticateFirebase($uid: String!, $jwt: String!) {
  authenticate(input: { firebase: { uid: $uid, jwt: $jwt } }) {
    __typename
    ... on CurrentUser {
      id
      identifier
    }
    ... on ErrorResult {
      errorCode
      message
    }
  }
}
"""

LOGOUT_MUTATION = """
mutation logout {
  logout {
    success
  }
}
"""

CREATE_CUSTOMER_ADDRESS_MUTATION = """
mutation createCustomerAddress($input: CreateAddressInput!) {
  createCustomerAddress(input: $input) {
    id
    fullName
    company
    streetLine1
    streetLine2
    city
    province
    postalCode
    country {
      id
      code
      name
    }
    phoneNumber
    defaultShippingAddress
    defaultBillingAddress
  }
}
"""
