"""Value objects for a sale draft (quote or order)."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

PICTURE_CDN = "https://static2.promotionalproductinc.com/p2/src"


class QuoteStatus(str, enum.Enum):
    NEW_QUOTE = "NewQuote"
    WAITING_FOR_SUPPLIER = "WaitingForSupplier"
    QUOTE_SENT_TO_CUSTOMER = "QuoteSentToCustomer"
    ON_HOLD = "OnHold"
    QUOTE_CONVERTED_TO_ORDER = "QuoteConvertedToOrder"
    CANCELLED = "Cancelled"
    CONVERTED_TO_ORDER_BY_CUSTOMER = "ConvertedToOrderByCustomer"


class OrderStatus(str, enum.Enum):
    NEW_ORDER = "NewOrder"
    IN_PROCESS = "InProgress"
    WAITING_FOR_CUSTOMER_APPROVAL = "WaitingForApproval"
    IN_PRODUCTION = "OrderInProduction"
    SHIPPED = "Shipped"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    HOLD = "OnHold"
    IS_QUOTE = "IsQuote"
    QUOTE_CONVERTED_TO_ORDER = "QuoteConvertedToOrder"
    SENT_ORDER_ACKNOWLEDGE_TO_THE_CUSTOMER = "SentOrderAcknowledgeToTheCustomer"
    SENT_ORDER_TO_SUPPLIER = "SentOrderToSupplier"
    WAITING_FOR_CUSTOMER_VISUAL_PROOF_APPROVAL = "WaitingForCustomerVisualProofApproval"
    VISUAL_PROOF_IN_PROCESS = "VisualProofInProcess"
    VISUAL_PROOF_APPROVED_BY_CUSTOMER = "VisualProofApprovedByCustomer"
    REORDER = "ReOrder"


class SaleKind(enum.Enum):
    """Quote or order.  Carries the endpoints and status vocabulary of the kind."""

    QUOTE = "quote"
    ORDER = "order"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def statuses(self):
        return QuoteStatus if self is SaleKind.QUOTE else OrderStatus

    @property
    def initial_status(self):
        return QuoteStatus.NEW_QUOTE if self is SaleKind.QUOTE else OrderStatus.NEW_ORDER

    @property
    def create_path(self) -> str:
        return f"/Admin/SaleEditor/AddEmpty{self.label}"

    @property
    def detail_path(self) -> str:
        return f"/Admin/SaleEditor/Get{self.label}Detail"

    @property
    def set_detail_path(self) -> str:
        return f"/Admin/SaleEditor/Set{self.label}Detail"

    def parse_status(self, value):
        """Return the kind's status member for ``value`` or raise ValueError."""
        return self.statuses(value)


STEPS = ("customer", "items", "details", "shipping", "notes")

ADDRESS_TYPES = ("billing", "shipping")


@dataclass(frozen=True)
class Address:
    """Postal address.  ``None`` means never entered, ``''`` means cleared."""

    name: Optional[str] = None
    street: Optional[str] = None
    street2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_form(cls, data: Dict[str, Any]) -> "Address":
        return cls(
            name=data.get("name"),
            street=data.get("street"),
            street2=data.get("street2"),
            city=data.get("city"),
            state=data.get("state"),
            zip_code=data.get("zipCode", data.get("zip_code")),
            country=data.get("country"),
        )

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> Optional["Address"]:
        """Address from a sale detail answer, ``None`` when it holds no street."""
        if not data or not data.get("addressLine"):
            return None
        return cls(
            name=data.get("name") or "",
            street=data.get("addressLine") or "",
            street2=data.get("addressLine2") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            zip_code=data.get("zipCode") or "",
            country=data.get("country") or "US",
        )

    def edit(self, **changes) -> "Address":
        return replace(self, **changes)

    def to_payload(self) -> Dict[str, str]:
        return {
            "addressLine": self.street or "",
            "addressLine2": self.street2 or "",
            "city": self.city or "",
            "state": self.state or "",
            "country": self.country or "United States",
            "name": self.name or "",
            "zipCode": self.zip_code or "",
        }

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.name,
            "street": self.street,
            "street2": self.street2,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "country": self.country,
        }


@dataclass(frozen=True)
class SavedAddress:
    """An entry of a customer's address book."""

    type: str
    address: Address
    is_primary: bool = False
    label: str = ""
    id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SavedAddress":
        return cls(
            type=(data.get("type") or "").lower(),
            address=Address.from_form(data),
            is_primary=bool(data.get("isPrimary")),
            label=data.get("label") or "",
            id=data.get("id"),
        )


@dataclass(frozen=True)
class Customer:
    id: str
    name: str = ""
    email: str = ""
    company: str = ""
    phone: str = ""

    @classmethod
    def from_form(cls, data: Dict[str, Any]) -> "Customer":
        name = data.get("name") or " ".join(
            filter(None, [data.get("firstName"), data.get("lastName")])
        )
        return cls(
            id=str(data["id"]),
            name=name,
            email=data.get("email") or "",
            company=data.get("companyName") or data.get("company") or "",
            phone=data.get("phone") or "",
        )

    @classmethod
    def from_detail(cls, data: Dict[str, Any]) -> "Customer":
        form = data.get("form") or {}
        return cls(
            id=str(data.get("id")),
            name=" ".join(filter(None, [form.get("firstName"), form.get("lastName")])),
            email=form.get("email") or "",
            company=form.get("companyName") or "",
            phone=form.get("phoneNumber") or "",
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "phone": self.phone,
        }


# text fields sent as null when blank on explicit save
_GENERAL_TEXT = {
    "product_name": "productName",
    "variant_name": "variantName",
    "method_name": "methodName",
    "color": "color",
    "product_item_number": "productItemNumber",
    "supplier_item_number": "supplierItemNumber",
    "artwork_text": "artworkText",
    "artwork_special_instructions": "artworkSpecialInstructions",
}
_GENERAL_NUMBERS = {
    "quantity": "quantity",
    "customer_price_per_quantity": "customerPricePerQuantity",
    "customer_setup_charge": "customerSetupCharge",
    "supplier_price_per_quantity": "supplierPricePerQuantity",
    "supplier_setup_charge": "supplierSetupCharge",
}
_IDS = {
    "variant_id": "variantId",
    "method_id": "methodId",
    "color_id": "colorId",
}


@dataclass(frozen=True)
class LineItem:
    id: str
    product_name: str = ""
    variant_name: str = ""
    method_name: str = ""
    color: str = ""
    quantity: int = 1
    product_item_number: str = ""
    supplier_item_number: str = ""
    customer_price_per_quantity: float = 0.0
    customer_setup_charge: float = 0.0
    supplier_price_per_quantity: float = 0.0
    supplier_setup_charge: float = 0.0
    artwork_text: str = ""
    artwork_special_instructions: str = ""
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    method_id: Optional[str] = None
    color_id: Optional[str] = None
    source_uri: Optional[str] = None
    custom_picture: Optional[Dict[str, Any]] = None
    custom_thumbnail: Optional[Dict[str, Any]] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "LineItem":
        form = data.get("form") or {}
        product = data.get("product") or {}
        source_uri = data.get("sourceUri")
        if not (data.get("customThumbnail") or data.get("customPicture") or source_uri):
            primary = product.get("primaryPicture") or {}
            if primary.get("sourceUri"):
                source_uri = primary["sourceUri"]
            elif product.get("id") and product.get("pictures"):
                source_uri = f"{PICTURE_CDN}/{product['id']}/{product['pictures'][0]}.webp"
        values = {attr: form.get(key) or "" for attr, key in _GENERAL_TEXT.items()}
        values.update({attr: form.get(key) or 0 for attr, key in _GENERAL_NUMBERS.items()})
        values["quantity"] = form.get("quantity") or 1
        values.update({attr: form.get(key) for attr, key in _IDS.items()})
        return cls(
            id=str(data["id"]),
            product_id=str(product["id"]) if product.get("id") is not None else None,
            source_uri=source_uri,
            custom_picture=data.get("customPicture"),
            custom_thumbnail=data.get("customThumbnail"),
            **values,
        )

    def patched(self, changes: Dict[str, Any]) -> "LineItem":
        known = {f.name for f in fields(self)} - {"id"}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"unknown line item fields: {', '.join(sorted(unknown))}")
        changes = dict(changes)
        for attr in _GENERAL_NUMBERS:
            if attr in changes:
                cast = int if attr == "quantity" else float
                changes[attr] = cast(changes[attr] or 0)
        return replace(self, **changes)

    def general_payload(self) -> Dict[str, Any]:
        general = {key: getattr(self, attr) or None for attr, key in _GENERAL_TEXT.items()}
        general.update({key: getattr(self, attr) for attr, key in _GENERAL_NUMBERS.items()})
        return general

    @property
    def customer_total(self) -> float:
        return self.quantity * self.customer_price_per_quantity + self.customer_setup_charge

    @property
    def supplier_total(self) -> float:
        return self.quantity * self.supplier_price_per_quantity + self.supplier_setup_charge

    @property
    def profit(self) -> float:
        return self.customer_total - self.supplier_total

    @property
    def margin(self) -> float:
        total = self.customer_total
        return (self.profit / total) * 100 if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(
            customer_total=self.customer_total,
            supplier_total=self.supplier_total,
            profit=self.profit,
            margin=round(self.margin, 2),
        )
        return data


@dataclass(frozen=True)
class SummaryTotals:
    items_total: float = 0.0
    setup_charge: float = 0.0
    sub_total: float = 0.0
    total: float = 0.0

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> "SummaryTotals":
        data = data or {}
        return cls(
            items_total=float(data.get("itemsTotal") or 0),
            setup_charge=float(data.get("setupCharge") or 0),
            sub_total=float(data.get("subTotal") or 0),
            total=float(data.get("total") or 0),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "itemsTotal": self.items_total,
            "setupCharge": self.setup_charge,
            "subTotal": self.sub_total,
            "total": self.total,
        }


@dataclass(frozen=True)
class SaleSummary:
    customer: SummaryTotals
    supplier: SummaryTotals
    profit: float
    estimated: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SaleSummary":
        return cls(
            customer=SummaryTotals.from_api(data.get("customerSummary")),
            supplier=SummaryTotals.from_api(data.get("totalSupplierSummary")),
            profit=float(data.get("profit") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customerSummary": self.customer.to_dict(),
            "totalSupplierSummary": self.supplier.to_dict(),
            "profit": self.profit,
            "estimated": self.estimated,
        }


@dataclass(frozen=True)
class ShippingDetails:
    company: str = ""
    type: str = ""
    cost: float = 0.0
    date: Optional[str] = None
    tracking_number: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "shippingCompany": self.company or "",
            "shippingType": self.type or "",
            "shippingCost": float(self.cost or 0),
            "shippingDate": self.date or None,
            "shippingTrackingNumber": self.tracking_number or None,
        }


@dataclass(frozen=True)
class CheckoutDetails:
    date_needed_by: Optional[str] = None
    additional_instructions: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        payload = {}
        if (self.date_needed_by or "").strip():
            payload["dateOrderNeededBy"] = self.date_needed_by.strip()
        if (self.additional_instructions or "").strip():
            payload["additionalInstructions"] = self.additional_instructions.strip()
        return payload


@dataclass(frozen=True)
class Notice:
    level: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "message": self.message}


@dataclass
class SaleDraft:
    """In-memory state of one sale being edited."""

    kind: SaleKind
    editing: bool = False
    remote_id: Optional[str] = None
    entity_id: Optional[int] = None
    customer: Optional[Customer] = None
    billing: Optional[Address] = None
    shipping: Optional[Address] = None
    same_as_shipping: bool = False
    line_items: List[LineItem] = field(default_factory=list)
    summary: Optional[SaleSummary] = None
    notes_document_id: Optional[str] = None
    checkout: CheckoutDetails = field(default_factory=CheckoutDetails)
    shipping_details: ShippingDetails = field(default_factory=ShippingDetails)
    status: Any = None
    original_status: Any = None
    saved_addresses: List[SavedAddress] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.status is None:
            self.status = self.kind.initial_status
        if self.original_status is None:
            self.original_status = self.status

    @property
    def is_live(self) -> bool:
        return self.remote_id is not None

    def assign_remote(self, remote_id: str, entity_id: Optional[int] = None) -> None:
        if self.remote_id is not None and self.remote_id != remote_id:
            raise ValueError(
                f"{self.kind.label} already bound to {self.remote_id}, refusing {remote_id}"
            )
        self.remote_id = remote_id
        if entity_id is not None:
            self.entity_id = entity_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "editing": self.editing,
            "saleId": self.remote_id,
            "id": self.entity_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "billingAddress": self.billing.to_dict() if self.billing else None,
            "shippingAddress": self.shipping.to_dict() if self.shipping else None,
            "sameAsShipping": self.same_as_shipping,
            "lineItems": [item.to_dict() for item in self.line_items],
            "summary": self.summary.to_dict() if self.summary else None,
            "notesId": self.notes_document_id,
            "checkoutDetails": self.checkout.to_payload(),
            "shippingDetails": self.shipping_details.to_payload(),
            "status": self.status.value,
        }
