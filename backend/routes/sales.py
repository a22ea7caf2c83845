# backend/routes/sales.py
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN, ROLE_CASHIER, ROLE_OWNER
from schemas import sale as sale_schemas
from services import sales
from utils.pdf import generate_invoice_pdf, get_pdf_path, invoice_filename
from utils.tokenJWT import role_required

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["Sales"])

# Sales management
can_manage_sales = role_required(ROLE_ADMIN, ROLE_OWNER)
# Checkout is open to the counter staff as well
can_checkout = role_required(ROLE_ADMIN, ROLE_OWNER, ROLE_CASHIER)


@router.get("", response_model=sale_schemas.SaleListPage)
def list_sales(
    search: Optional[str] = Query(None, description="Invoice number or customer name"),
    on_date: Optional[date] = Query(None, alias="date"),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_sales),
):
    return sales.list_sales(db, search=search, on_date=on_date, status=status, page=page, page_size=page_size)


@router.post("", response_model=sale_schemas.SaleOut, status_code=201)
def create_sale(
    payload: sale_schemas.SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_checkout),
):
    return sales.create_sale(db, payload, user_id=current_user.id)


@router.get("/stats", response_model=sale_schemas.SalesStatistics)
def sales_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_sales),
):
    return sales.sales_statistics(db)


@router.get("/{sale_id}", response_model=sale_schemas.SaleOut)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_checkout),
):
    return sales.get_sale(db, sale_id)


@router.get("/{sale_id}/invoice-pdf")
def download_invoice_pdf(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_checkout),
):
    sale = sales.get_sale(db, sale_id)
    pdf_path = get_pdf_path(sale)

    # Sales are immutable, so a rendered file stays valid
    if not pdf_path.exists():
        generate_invoice_pdf(sale, pdf_path)
        logger.info("Rendered invoice PDF %s", pdf_path)

    return FileResponse(
        path=str(pdf_path),
        media_type="application/pdf",
        filename=invoice_filename(sale),
    )
