"""
发票 PDF 渲染（reportlab platypus）

输入为已冻结的发票行、交易对手与发票编号/日期，输出 PDF 字节。
"""
import os
from dataclasses import dataclass
from decimal import Decimal
from io import BytesIO
from typing import Any, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from lc_core.config import Settings, get_settings
from lc_core.services.amount_words import amount_to_words_ru
from lc_core.services.tiers import format_number
from lc_core.utils.logger import get_logger

logger = get_logger(__name__)

FONT_NAME = "InvoiceSans"
FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/Arial Unicode.ttf",
    "C:\\Windows\\Fonts\\arial.ttf",
)

_registered_font: Optional[str] = None


@dataclass
class SellerRequisites:
    """卖方（收款方）信息"""
    name: str
    inn: str
    address: str
    account: str
    bank: str
    bik: str
    correspondent_account: str

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SellerRequisites":
        settings = settings or get_settings()
        return cls(
            name=settings.seller_name,
            inn=settings.seller_inn,
            address=settings.seller_address,
            account=settings.seller_account,
            bank=settings.seller_bank,
            bik=settings.seller_bik,
            correspondent_account=settings.seller_correspondent_account,
        )


def _resolve_font() -> str:
    """注册包含西里尔字符的 TTF 字体；找不到时退回 Helvetica"""
    global _registered_font
    if _registered_font:
        return _registered_font

    configured = get_settings().pdf_font_path
    candidates = ((configured,) if configured else ()) + FONT_CANDIDATES
    for path in candidates:
        if path and os.path.exists(path):
            pdfmetrics.registerFont(TTFont(FONT_NAME, path))
            _registered_font = FONT_NAME
            logger.info("Registered invoice font", path=path)
            return _registered_font

    logger.warning("No Cyrillic TTF font found, falling back to Helvetica")
    _registered_font = "Helvetica"
    return _registered_font


def _money(value: Decimal) -> str:
    """1234567.5 -> "1 234 567,50" """
    return f"{Decimal(value):,.2f}".replace(",", " ").replace(".", ",")


def build_payment_qr_payload(seller: SellerRequisites, total: Decimal, purpose: str) -> str:
    """ГОСТ Р 56042-2014 收款二维码内容（Sum 单位为戈比）"""
    kopecks = int((Decimal(total) * 100).to_integral_value())
    parts = [
        "ST00012",
        f"Name={seller.name}",
        f"PersonalAcc={seller.account}",
        f"BankName={seller.bank}",
        f"BIC={seller.bik}",
        f"CorrespAcc={seller.correspondent_account}",
        f"PayeeINN={seller.inn}",
        f"Sum={kopecks}",
        f"Purpose={purpose}",
    ]
    return "|".join(parts)


def _qr_drawing(payload: str, size: float = 35 * mm) -> Drawing:
    widget = QrCodeWidget(payload)
    x1, y1, x2, y2 = widget.getBounds()
    drawing = Drawing(size, size, transform=[size / (x2 - x1), 0, 0, size / (y2 - y1), 0, 0])
    drawing.add(widget)
    return drawing


def render_invoice_pdf(
    invoice: Any,
    items: Sequence[Any],
    counterparty: Any,
    seller: Optional[SellerRequisites] = None
) -> bytes:
    """
    渲染发票

    Args:
        invoice: 带 number / invoice_date / total 属性的发票
        items: 冻结的发票行（position, description, unit, quantity, price, amount）
        counterparty: 买方
        seller: 卖方信息，默认取配置

    Returns:
        PDF 字节
    """
    seller = seller or SellerRequisites.from_settings()
    font = _resolve_font()

    styles = getSampleStyleSheet()
    normal = ParagraphStyle("InvoiceNormal", parent=styles["Normal"], fontName=font, fontSize=9, leading=12)
    title = ParagraphStyle("InvoiceTitle", parent=normal, fontSize=14, leading=18, spaceAfter=6)
    bold = ParagraphStyle("InvoiceBold", parent=normal, fontSize=10)

    def p(text: str, style: ParagraphStyle = normal) -> Paragraph:
        return Paragraph(escape(text or ""), style)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=f"Счёт № {invoice.number}",
    )
    elements = []

    # 卖方银行信息
    bank_table = Table(
        [
            [p(seller.bank), p(f"БИК {seller.bik}")],
            [p("Банк получателя"), p(f"Сч. № {seller.correspondent_account}")],
            [p(f"ИНН {seller.inn}   {seller.name}"), p(f"Сч. № {seller.account}")],
            [p("Получатель"), p("")],
        ],
        colWidths=[120 * mm, 60 * mm],
    )
    bank_table.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    elements.append(bank_table)
    elements.append(Spacer(1, 6 * mm))

    elements.append(p(f"Счёт на оплату № {invoice.number} от {invoice.invoice_date:%d.%m.%Y}", title))
    elements.append(p(f"Поставщик: {seller.name}, ИНН {seller.inn}, {seller.address}"))

    buyer_parts = [counterparty.name]
    if counterparty.inn:
        buyer_parts.append(f"ИНН {counterparty.inn}")
    if counterparty.kpp:
        buyer_parts.append(f"КПП {counterparty.kpp}")
    if counterparty.address:
        buyer_parts.append(counterparty.address)
    elements.append(p("Покупатель: " + ", ".join(buyer_parts)))
    if counterparty.contract:
        elements.append(p(f"Основание: {counterparty.contract}"))
    elements.append(Spacer(1, 4 * mm))

    # 明细表
    rows = [[p("№"), p("Наименование"), p("Кол-во"), p("Ед."), p("Цена"), p("Сумма")]]
    for item in items:
        rows.append([
            p(str(item.position)),
            p(item.description),
            p(format_number(item.quantity)),
            p(item.unit),
            p(_money(item.price)),
            p(_money(item.amount)),
        ])
    items_table = Table(rows, colWidths=[10 * mm, 85 * mm, 18 * mm, 15 * mm, 26 * mm, 26 * mm], repeatRows=1)
    items_table.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#eeeeee")),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 3 * mm))

    totals = Table(
        [
            [p("Итого:", bold), p(_money(invoice.total), bold)],
            [p("Без налога (НДС)", bold), p("-", bold)],
            [p("Всего к оплате:", bold), p(_money(invoice.total), bold)],
        ],
        colWidths=[154 * mm, 26 * mm],
    )
    totals.setStyle(TableStyle([("ALIGN", (0, 0), (0, -1), "RIGHT")]))
    elements.append(totals)
    elements.append(Spacer(1, 3 * mm))

    elements.append(p(f"Всего наименований {len(items)}, на сумму {_money(invoice.total)} руб."))
    elements.append(p(amount_to_words_ru(invoice.total), bold))
    elements.append(Spacer(1, 6 * mm))

    purpose = f"Оплата по счёту № {invoice.number} от {invoice.invoice_date:%d.%m.%Y}"
    elements.append(_qr_drawing(build_payment_qr_payload(seller, invoice.total, purpose)))
    elements.append(Spacer(1, 6 * mm))
    elements.append(p(f"Поставщик ____________________ {seller.name}"))

    doc.build(elements)
    pdf = buffer.getvalue()
    buffer.close()
    return pdf
