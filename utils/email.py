# utils/email.py
import requests

from config import BREVO_API_KEY, EMAIL_SENDER, EMAIL_SENDER_NAME, FRONTEND_URL

BREVO_URL = "https://api.brevo.com/v3/smtp/email"


def email_enabled() -> bool:
     return bool(BREVO_API_KEY)


def render_notification_email(title: str, message: str, link_path: str = None) -> str:
     link = ""
     if link_path:
          link = f'<p><a href="{FRONTEND_URL}{link_path}" style="color:#2563EB">Open in Buildstate</a></p>'
     return f"""
          <h2>{title}</h2>
          <p>{message}</p>
          {link}
     """


def send_email(to_email: str, subject: str, html_content: str):
     if not BREVO_API_KEY:
          raise Exception("BREVO_API_KEY is not set")

     response = requests.post(
          BREVO_URL,
          headers={
               "api-key": BREVO_API_KEY,
               "Content-Type": "application/json",
          },
          json={
               "sender": {"name": EMAIL_SENDER_NAME, "email": EMAIL_SENDER},
               "to": [{"email": to_email}],
               "subject": subject,
               "htmlContent": html_content,
          },
          timeout=10,
     )
     if response.status_code not in (200, 201, 202):
          raise Exception(f"Brevo error: {response.text}")
