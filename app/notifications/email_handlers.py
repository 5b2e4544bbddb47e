from app.services.email_service import send_email
from app.utils.template import render_template
from app.config import settings


def send_user_email(template, subject, to, **ctx) -> bool:
    html = render_template(template, **ctx)
    return send_email(to=to, subject=subject, html=html)


def send_admin_email(template, subject, **ctx) -> bool:
    admins = settings.admin_email_list
    if not admins:
        return True
    html = render_template(template, **ctx)
    return send_email(to=admins, subject=subject, html=html)
