from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from io import BytesIO
from sqlalchemy.orm import Session
import logging

from database import get_db
from utils.auth_utils import get_current_user, get_user_identifier
from utils.receipt_utils import ReceiptNotFound, build_order_receipt, render_receipt_pdf

router = APIRouter(prefix="/api/receipts", tags=["Receipts"])
logger = logging.getLogger("receipts")


@router.get("/order/{order_id}")
def order_receipt(order_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    try:
        return build_order_receipt(db, order_id, request.app.state.settings, get_user_identifier(user))
    except ReceiptNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/order/{order_id}/pdf")
def order_receipt_pdf(order_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    try:
        receipt = build_order_receipt(db, order_id, request.app.state.settings, get_user_identifier(user))
    except ReceiptNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    pdf_bytes = render_receipt_pdf(receipt)
    logger.info(f"Receipt PDF for order {receipt['orderNumber']} generated by user {get_user_identifier(user)}")
    headers = {
        'Content-Disposition': f'inline; filename="receipt_{receipt["orderNumber"]}.pdf"'
    }
    return StreamingResponse(BytesIO(pdf_bytes), media_type='application/pdf', headers=headers)
