"""
MJML Email Templates
"""

from html import escape
from typing import Optional

THEME = {
    "primary": "#ea580c",
    "background": "#f4f4f5",
    "card_bg": "#ffffff",
    "text_primary": "#000000",
    "text_secondary": "#333333",
    "text_muted": "#666666",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    footer_text: str = "Powered by Halo Assistant",
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#000000"
              font-weight="700" border-radius="4px" padding="12px 24px">
              {cta_label}
            </mj-button>
            <mj-text font-size="12px" color="{THEME['text_muted']}">
              If the button doesn't work, copy and paste this link into your browser:<br />
              <a href="{cta_url}">{cta_url}</a>
            </mj-text>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['primary']}" padding="20px">
          <mj-column>
            <mj-text align="center" font-size="24px" font-weight="700" color="{THEME['text_primary']}">
              {title}
            </mj-text>
          </mj-column>
        </mj-section>
        <mj-section background-color="{THEME['card_bg']}" padding="30px 20px 0 20px">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
        <mj-section padding="20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}">{footer_text}</mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def rating_request_template(
    client_name: str,
    business_name: str,
    appointment_date: str,
    appointment_time: str,
    service_name: str,
    rating_link: str,
) -> str:
    business = escape(business_name)
    content = f"""
            <mj-text>We hope you enjoyed your recent visit to <strong>{business}</strong>.</mj-text>
            <mj-text>
              <strong>Appointment Details:</strong><br />
              Date: {escape(appointment_date)}<br />
              Time: {escape(appointment_time)}<br />
              Service: {escape(service_name)}
            </mj-text>
            <mj-text>Your feedback helps us improve. Please take a moment to rate your experience:</mj-text>
    """
    return get_base_template(
        title=f"Thank You, {escape(client_name)}!",
        preview_text=f"How was your visit to {business}?",
        content_sections=content,
        cta_url=rating_link,
        cta_label="Rate Your Experience",
        footer_text=f"Thank you for choosing {business}!",
    )
