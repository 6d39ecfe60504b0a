"""
QR Code Generator Module - Ticket Check-In System

This module handles QR code generation for tickets and decoding of scanned
QR payloads. Each ticket's QR code encodes the JSON object
``{"ticketId": ..., "name": ...}``; the verification path expects exactly
that shape back from the scanner.

Features:
- Ticket QR code generation (PNG, base64)
- Optional caption overlay with attendee name and ticket id
- QR code image export using the ``{name}_{ticketId}_QR.png`` naming
- Printable PDF sheet of many ticket QR codes
- Scanned payload decoding and validation
"""

import base64
import io
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import qrcode
from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from checkin.modules.errors import PayloadFormatError


def encode_payload(ticket_id: str, name: str) -> str:
    """JSON text encoded into a ticket's QR code."""
    return json.dumps({'ticketId': ticket_id, 'name': name})


def decode_payload(decoded_text: str) -> Tuple[str, str]:
    """
    Parse decoded QR text into ``(ticket_id, name)``.

    Raises:
        PayloadFormatError: If the text is not a JSON object carrying string
            ``ticketId`` and ``name`` fields
    """
    try:
        data = json.loads(decoded_text)
    except (TypeError, ValueError) as e:
        raise PayloadFormatError(f"QR payload is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise PayloadFormatError("QR payload is not a JSON object")

    ticket_id = data.get('ticketId')
    name = data.get('name')
    if not isinstance(ticket_id, str) or not isinstance(name, str):
        raise PayloadFormatError("QR payload is missing ticketId or name")

    return ticket_id, name


def qr_filename(ticket_id: str, name: str) -> str:
    return f"{name}_{ticket_id}_QR.png"


class QRGenerator:
    """
    QR code generator for ticket payloads.
    Produces PNG images as base64 strings and can lay many codes out on a
    printable PDF.
    """

    def __init__(self, box_size: int = 10, border: int = 4,
                 fill_color: str = 'black', back_color: str = 'white'):
        """Initialize the QR code generator with image settings."""
        self.logger = logging.getLogger(__name__)

        self.default_settings = {
            'version': None,  # let qrcode pick the smallest version that fits
            'error_correction': qrcode.constants.ERROR_CORRECT_M,
            'box_size': box_size,
            'border': border,
            'fill_color': fill_color,
            'back_color': back_color
        }

    def _make_image(self, data: str, settings: Dict[str, Any]) -> Image.Image:
        qr = qrcode.QRCode(
            version=settings['version'],
            error_correction=settings['error_correction'],
            box_size=settings['box_size'],
            border=settings['border']
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(
            fill_color=settings['fill_color'],
            back_color=settings['back_color']
        )
        # round-trip through PNG to get a plain RGB PIL image
        buffer = io.BytesIO()
        img.save(buffer)
        buffer.seek(0)
        return Image.open(buffer).convert('RGB')

    def generate_ticket_qr_code(self, ticket_id: str, name: str,
                                with_caption: bool = False,
                                custom_settings: dict = None) -> dict:
        """
        Generate a QR code for a ticket.

        Args:
            ticket_id (str): Ticket identifier
            name (str): Attendee name
            with_caption (bool): Draw name and ticket id below the code
            custom_settings (dict): Overrides for the default image settings

        Returns:
            dict: Generation result with base64 PNG data
        """
        try:
            if not ticket_id or not name:
                raise ValueError("Both ticket id and name are required")

            settings = self.default_settings.copy()
            if custom_settings:
                settings.update(custom_settings)

            qr_data = encode_payload(ticket_id, name)
            img = self._make_image(qr_data, settings)

            if with_caption:
                img = self._add_caption_overlay(img, ticket_id, name)

            buffer = io.BytesIO()
            img.save(buffer, format='PNG')
            img_base64 = base64.b64encode(buffer.getvalue()).decode()

            self.logger.info(f"QR code generated for ticket {ticket_id}")
            return {
                'success': True,
                'qr_data': qr_data,
                'image_base64': img_base64,
                'image_size': img.size,
                'filename': qr_filename(ticket_id, name),
                'ticket_id': ticket_id,
                'name': name,
                'generated_at': datetime.now().isoformat()
            }

        except Exception as e:
            self.logger.error(f"QR code generation failed: {str(e)}")
            return {
                'success': False,
                'error': str(e),
                'ticket_id': ticket_id or 'unknown'
            }

    def _add_caption_overlay(self, qr_img: Image.Image, ticket_id: str,
                             name: str) -> Image.Image:
        """
        Add a caption with attendee name and ticket id below the code.

        Returns:
            Image.Image: QR code with caption, or the plain code on failure
        """
        try:
            width, height = qr_img.size
            new_img = Image.new('RGB', (width, height + 60), 'white')
            new_img.paste(qr_img, (0, 0))
            draw = ImageDraw.Draw(new_img)

            try:
                font_large = ImageFont.truetype("arial.ttf", 16)
                font_small = ImageFont.truetype("arial.ttf", 12)
            except (IOError, OSError):
                font_large = ImageFont.load_default()
                font_small = ImageFont.load_default()

            text_y = height + 8
            for text, font in ((name, font_large), (ticket_id, font_small)):
                bbox = draw.textbbox((0, 0), text, font=font)
                text_width = bbox[2] - bbox[0]
                draw.text(((width - text_width) // 2, text_y), text,
                          fill='black', font=font)
                text_y += 24

            return new_img

        except Exception as e:
            self.logger.warning(f"Failed to add caption, returning plain QR code: {str(e)}")
            return qr_img

    def save_qr_code_image(self, image_base64: str, filename: str,
                           output_dir: str = 'exports/qr_codes') -> Optional[str]:
        """
        Save a QR code image to the file system.

        Args:
            image_base64 (str): Base64 encoded PNG
            filename (str): Output filename
            output_dir (str): Output directory

        Returns:
            str: Path of the written file, or None on failure
        """
        try:
            os.makedirs(output_dir, exist_ok=True)
            file_path = os.path.join(output_dir, os.path.basename(filename))
            with open(file_path, 'wb') as f:
                f.write(base64.b64decode(image_base64))

            self.logger.info(f"QR code image saved to {file_path}")
            return file_path

        except Exception as e:
            self.logger.error(f"Failed to save QR code image: {str(e)}")
            return None

    def create_bulk_qr_pdf(self, tickets: List[Tuple[str, str]]) -> Optional[bytes]:
        """
        Lay out QR codes for many tickets on A4 pages for printing.

        Args:
            tickets (List[Tuple[str, str]]): ``(ticket_id, name)`` pairs

        Returns:
            bytes: PDF document, or None on failure
        """
        try:
            buffer = io.BytesIO()
            c = canvas.Canvas(buffer, pagesize=A4)
            width, height = A4

            # 2x3 grid per page
            qr_per_row = 2
            qr_per_col = 3
            qr_per_page = qr_per_row * qr_per_col

            cell_width = width / qr_per_row
            cell_height = height / qr_per_col
            qr_size = min(cell_width, cell_height) * 0.8

            for i, (ticket_id, name) in enumerate(tickets):
                if i > 0 and i % qr_per_page == 0:
                    c.showPage()

                row = (i % qr_per_page) // qr_per_row
                col = (i % qr_per_page) % qr_per_row
                x = col * cell_width + (cell_width - qr_size) / 2
                y = height - (row + 1) * cell_height + (cell_height - qr_size) / 2

                img = self._make_image(encode_payload(ticket_id, name), self.default_settings)
                c.drawImage(ImageReader(img), x, y, width=qr_size, height=qr_size)
                c.drawCentredString(x + qr_size / 2, y - 12, f"{name} ({ticket_id})")

            c.save()
            self.logger.info(f"QR code sheet created for {len(tickets)} tickets")
            return buffer.getvalue()

        except Exception as e:
            self.logger.error(f"PDF generation failed: {str(e)}")
            return None
