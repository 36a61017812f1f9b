"""SaleEditor endpoints, bound once to a sale kind."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from saledesk.api.client import SaleEditorClient
from saledesk.drafts.models import SaleKind


class SaleEditorApi:
    def __init__(self, client: SaleEditorClient, kind: SaleKind) -> None:
        self.client = client
        self.kind = kind

    # sale
    def create_draft(self, customer_id: str) -> Dict[str, Any]:
        return self.client.post(self.kind.create_path, {"customerId": customer_id})

    def get_detail(self, entity_id: int) -> Dict[str, Any]:
        return self.client.get(self.kind.detail_path, params={"id": entity_id})

    def set_sale_detail(
        self,
        sale_id: str,
        addresses: Optional[Dict[str, Any]] = None,
        shipping_details: Optional[Dict[str, Any]] = None,
        checkout_details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"saleId": sale_id}
        if addresses is not None:
            payload["addresses"] = addresses
        if shipping_details is not None:
            payload["shippingDetails"] = shipping_details
        if checkout_details is not None:
            payload["checkoutDetails"] = checkout_details
        return self.client.post("/Admin/SaleEditor/SetSaleDetail", payload)

    def set_status(self, entity_id, status: str) -> Dict[str, Any]:
        return self.client.post(self.kind.set_detail_path, {"id": entity_id, "status": status})

    def set_notes_id(self, entity_id, notes_id: str) -> Dict[str, Any]:
        return self.client.post(self.kind.set_detail_path, {"id": entity_id, "notesId": notes_id})

    def get_summary(self, sale_id: str) -> Dict[str, Any]:
        return self.client.get("/Admin/SaleEditor/GetSaleSummary", params={"saleId": sale_id})

    # line items
    def add_empty_line_item(self, sale_id: str) -> List[Dict[str, Any]]:
        data = self.client.post("/Admin/SaleEditor/AddEmptyLineItem", {"saleId": sale_id})
        return data.get("lineItems") or []

    def remove_line_items(self, sale_id: str, line_item_ids: Iterable[str]) -> List[Dict[str, Any]]:
        data = self.client.post(
            "/Admin/SaleEditor/RemoveLineItems",
            {"saleId": sale_id, "lineItemIds": list(line_item_ids)},
        )
        return data.get("lineItems") or []

    def set_line_item_detail(self, line_item_id: str, general: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.post(
            "/Admin/SaleEditor/SetLineItemDetail",
            {"lineItemId": line_item_id, "general": general},
        )

    def set_line_item_thumbnail(self, line_item_id: str, picture_id: str) -> Optional[str]:
        data = self.client.post(
            "/Admin/SaleEditor/SetLineItemThumbnail",
            {"lineItemId": line_item_id, "pictureId": picture_id},
        )
        return data.get("sourceUri")

    # customers
    def get_customer(self, customer_id: str) -> Dict[str, Any]:
        return self.client.get(
            "/Admin/CustomerEditor/GetCustomerById", params={"customerId": customer_id}
        )

    # notes documents
    def create_document(self, sale_id: str, is_public: bool = False) -> Optional[str]:
        data = self.client.post("/Admin/Document/AddDocument", {"isPublic": is_public, "saleId": sale_id})
        return data.get("id")

    def add_document_revision(self, document_id: str, content: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.post(
            "/Admin/Document/AddDocumentRevision",
            {"documentId": document_id, "content": content},
        )

    def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        data = self.client.get("/Admin/Document/GetDocumentDetail", params={"documentId": document_id})
        return data.get("content")
