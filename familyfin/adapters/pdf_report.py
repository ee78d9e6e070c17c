"""PDF Report Renderer Adapter

ReportRenderer ABC の reportlab を使った実装。
ReportDocument（タイトル・表・フッター行）から A4 縦の PDF を生成する。

レイアウト:
  タイトル（太字・大）
  [セクション見出し]
  [表: ヘッダー行は accent 色、本文は縞模様]
  ...
  フッター行（最終行のみ太字）
"""

from __future__ import annotations

import logging
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from familyfin.domain.models import ReportDocument, ReportSection
from familyfin.domain.ports import ReportRenderer

logger = logging.getLogger(__name__)

_STRIPE = colors.Color(245 / 255, 245 / 255, 245 / 255)


class ReportLabPdfRenderer(ReportRenderer):
    """
    reportlab (platypus) を使った PDF 生成実装。

    組み込みフォント（Helvetica）のみを使うため、
    金額の通貨表記は記号ではなく通貨コードで渡すこと。
    """

    def __init__(self) -> None:
        styles = getSampleStyleSheet()
        self._title_style = styles["Title"]
        self._heading_style = styles["Heading2"]
        self._body_style = styles["BodyText"]
        self._bold_style = styles["Heading4"]

    def render(self, document: ReportDocument) -> bytes:
        """
        ReportDocument から PDF バイト列を生成。

        Args:
            document: 出力するレポート

        Returns:
            PDF ファイルの内容
        """
        buffer = BytesIO()
        pdf = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            title=document.title,
            leftMargin=14 * mm,
            rightMargin=14 * mm,
            topMargin=16 * mm,
            bottomMargin=16 * mm,
        )

        story: list = [Paragraph(escape(document.title), self._title_style)]
        for section in document.sections:
            if section.heading:
                story.append(Paragraph(escape(section.heading), self._heading_style))
            story.append(self._build_table(section, pdf.width))
            story.append(Spacer(1, 8 * mm))

        for i, line in enumerate(document.footer_lines):
            is_last = i == len(document.footer_lines) - 1
            style = self._bold_style if is_last else self._body_style
            story.append(Paragraph(escape(line), style))

        pdf.build(story)
        content = buffer.getvalue()
        logger.info(
            "Rendered PDF: filename=%s, sections=%d, bytes=%d",
            document.filename,
            len(document.sections),
            len(content),
        )
        return content

    @staticmethod
    def _build_table(section: ReportSection, width: float) -> Table:
        data = [section.headers] + section.rows
        if not section.rows:
            # 空の月でも表の形は保つ
            data.append(["-"] * len(section.headers))

        # 名前列（2列目）を広めに取る
        n_cols = len(section.headers)
        if n_cols == 4:
            col_widths = [width * 0.18, width * 0.40, width * 0.22, width * 0.20]
        else:
            col_widths = [width / n_cols] * n_cols

        r, g, b = section.accent
        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.Color(r / 255, g / 255, b / 255)),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("ALIGN", (-1, 0), (-1, -1), "RIGHT"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, _STRIPE]),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        return table
