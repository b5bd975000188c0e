"""
Admin Orders API Endpoints
Order index, new orders, line items, distribution, payment capture and adjustments

Author: Hub Admin team
Date: 2025-11-03
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from hubadmin.api.deps import get_adjustment_service, get_order_admin_service, get_payment_service
from hubadmin.core.auth import TokenUser, require_enterprise_user
from hubadmin.core.exceptions import HubAdminError
from hubadmin.domain.order import OrderFilters
from hubadmin.services.adjustment_service import KEEP_TAX_RATE, AdjustmentService
from hubadmin.services.order_admin_service import OrderAdminService
from hubadmin.services.payment_service import PaymentService


router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================

class OrderCreateRequest(BaseModel):
    email: Optional[str] = None


class DistributionUpdate(BaseModel):
    distributor_id: int
    order_cycle_id: int


class LineItemCreate(BaseModel):
    variant_id: int
    quantity: int = Field(1, ge=1)


class AdjustmentCreate(BaseModel):
    label: str
    amount: Decimal
    tax_rate_id: Optional[int] = None


class AdjustmentUpdate(BaseModel):
    label: Optional[str] = None
    amount: Optional[Decimal] = None
    tax_rate_id: Optional[int] = None  # null = "Remove tax", omitted = keep current rate


def _http_error(e: HubAdminError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


# =============================================================================
# Orders
# =============================================================================

@router.get("/")
async def list_orders(
    state: Optional[str] = Query(None, description="Filter by order state"),
    payment_state: Optional[str] = Query(None, description="Filter by payment state"),
    search: Optional[str] = Query(None, description="Search by order number or email"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    """
    Orders visible to the user, newest first

    Each order carries `can_capture` for the capture action.
    """
    try:
        filters = OrderFilters(
            state=state,
            payment_state=payment_state,
            search=search,
            limit=limit,
            offset=offset
        )
        orders, total = service.list_orders(user, filters)

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.post("/", status_code=201)
async def create_order(
    payload: Optional[OrderCreateRequest] = None,
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    """New, empty cart order"""
    try:
        order = service.create_order(user, email=payload.email if payload else None)
        return {"status": "success", "data": order.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating order: {str(e)}")


@router.get("/{number}")
async def get_order(
    number: str,
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    try:
        order = service.get_order(user, number)
        return {"status": "success", "data": order.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")


@router.get("/{number}/distribution")
async def get_distribution_form(
    number: str,
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    """
    Distributor and order cycle choices for the order

    Finalized orders return read-only labels instead of options.
    """
    try:
        return {"status": "success", "data": service.distribution_form(user, number)}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching distribution options: {str(e)}")


@router.put("/{number}/distribution")
async def update_distribution(
    number: str,
    payload: DistributionUpdate,
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    try:
        order, next_step = service.update_distribution(
            user,
            number,
            distributor_id=payload.distributor_id,
            order_cycle_id=payload.order_cycle_id
        )
        return {"status": "success", "next_step": next_step, "data": order.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating distribution: {str(e)}")


@router.post("/{number}/finalize")
async def finalize_order(
    number: str,
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    try:
        order = service.finalize_order(user, number)
        return {"status": "success", "data": order.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error finalizing order: {str(e)}")


# =============================================================================
# Line items
# =============================================================================

@router.get("/{number}/variants")
async def search_variants(
    number: str,
    q: str = Query("", description="Product name or SKU"),
    limit: int = Query(20, ge=1, le=100),
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    """Variants that can be added to this order"""
    try:
        variants = service.search_variants(user, number, q, limit=limit)
        return {
            "status": "success",
            "count": len(variants),
            "data": [variant.to_dict() for variant in variants]
        }

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error searching variants: {str(e)}")


@router.post("/{number}/line-items", status_code=201)
async def add_line_item(
    number: str,
    payload: LineItemCreate,
    user: TokenUser = Depends(require_enterprise_user),
    service: OrderAdminService = Depends(get_order_admin_service)
):
    try:
        order = service.add_line_item(user, number, payload.variant_id, payload.quantity)
        return {"status": "success", "data": order.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding line item: {str(e)}")


# =============================================================================
# Payments
# =============================================================================

@router.post("/{number}/capture")
async def capture_payment(
    number: str,
    payment_id: Optional[int] = Query(None, description="Payment to capture (default: first pending)"),
    user: TokenUser = Depends(require_enterprise_user),
    service: PaymentService = Depends(get_payment_service)
):
    try:
        order, message = service.capture(user, number, payment_id=payment_id)
        return {"status": "success", "message": message, "data": order.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error capturing payment: {str(e)}")


# =============================================================================
# Adjustments
# =============================================================================

@router.get("/{number}/adjustments")
async def list_adjustments(
    number: str,
    user: TokenUser = Depends(require_enterprise_user),
    service: AdjustmentService = Depends(get_adjustment_service)
):
    try:
        adjustments = service.list_adjustments(user, number)
        return {
            "status": "success",
            "count": len(adjustments),
            "data": [adjustment.to_dict() for adjustment in adjustments]
        }

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching adjustments: {str(e)}")


@router.post("/{number}/adjustments", status_code=201)
async def create_adjustment(
    number: str,
    payload: AdjustmentCreate,
    user: TokenUser = Depends(require_enterprise_user),
    service: AdjustmentService = Depends(get_adjustment_service)
):
    try:
        adjustment = service.create_adjustment(
            user,
            number,
            label=payload.label,
            amount=payload.amount,
            tax_rate_id=payload.tax_rate_id
        )
        return {"status": "success", "data": adjustment.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating adjustment: {str(e)}")


@router.get("/{number}/adjustments/{adjustment_id}/edit")
async def edit_adjustment(
    number: str,
    adjustment_id: int,
    user: TokenUser = Depends(require_enterprise_user),
    service: AdjustmentService = Depends(get_adjustment_service)
):
    """Edit form data: read-only included tax and the default tax rate"""
    try:
        return {"status": "success", "data": service.adjustment_form(user, number, adjustment_id)}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching adjustment: {str(e)}")


@router.put("/{number}/adjustments/{adjustment_id}")
async def update_adjustment(
    number: str,
    adjustment_id: int,
    payload: AdjustmentUpdate,
    user: TokenUser = Depends(require_enterprise_user),
    service: AdjustmentService = Depends(get_adjustment_service)
):
    try:
        tax_rate_id = payload.tax_rate_id if "tax_rate_id" in payload.model_fields_set else KEEP_TAX_RATE
        adjustment = service.update_adjustment(
            user,
            number,
            adjustment_id,
            tax_rate_id=tax_rate_id,
            label=payload.label,
            amount=payload.amount
        )
        return {"status": "success", "data": adjustment.to_dict()}

    except HubAdminError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating adjustment: {str(e)}")
