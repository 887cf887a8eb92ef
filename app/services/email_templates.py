from html import escape

BRAND = "Realtor Space"
BRAND_COLOR = "#1f6f43"


def _layout(title: str, body_html: str, footer: str) -> str:
    return f"""
    <html>
    <body style="background-color:#f4f5f7;font-family:-apple-system,Segoe UI,Roboto,Arial,sans-serif;">
      <table align="center" width="100%" cellpadding="0" cellspacing="0">
        <tr><td align="center" style="padding:40px 0;">
          <table width="480" cellpadding="0" cellspacing="0"
                 style="background:#ffffff;border-radius:8px;overflow:hidden;
                        box-shadow:0 2px 8px rgba(0,0,0,0.08);">
            <tr><td style="padding:32px;text-align:center;">
              <h2 style="color:{BRAND_COLOR};">{title}</h2>
              {body_html}
              <p style="font-size:12px;color:#999;margin-top:32px;">{footer}</p>
            </td></tr>
          </table>
        </td></tr>
      </table>
    </body>
    </html>
    """


def _button(link: str, label: str) -> str:
    return f"""
              <a href="{link}"
                 style="display:inline-block;background-color:{BRAND_COLOR};color:#ffffff;
                        padding:12px 24px;border-radius:4px;text-decoration:none;
                        font-weight:600;">{label}</a>
              <p style="font-size:13px;color:#666;margin-top:24px;">
                If the button doesn't work, copy and paste this URL:<br/>
                <a href="{link}" style="color:{BRAND_COLOR};word-break:break-all;">{link}</a>
              </p>
    """


def build_verification_email(first_name: str, verify_link: str, ttl_hours: int = 24) -> tuple[str, str]:
    """Returns (html, text) for the verify-your-email message."""
    html = _layout(
        "Verify your email",
        f"""
              <p style="color:#4a4a4a;font-size:14px;margin-bottom:24px;">
                Hi <b>{escape(first_name)}</b>, welcome to {BRAND}. Please confirm your
                email address to start browsing and listing properties across Kenya.
              </p>
        """ + _button(verify_link, "VERIFY EMAIL"),
        f"This link expires in {ttl_hours} hours.<br/>"
        "If you didn't create an account, you can ignore this email.",
    )
    text = (
        f"Hi {first_name},\n\n"
        f"Confirm your {BRAND} email address by opening this link:\n{verify_link}\n\n"
        f"The link expires in {ttl_hours} hours."
    )
    return html, text


def build_password_reset_email(first_name: str, reset_link: str, ttl_minutes: int = 60) -> tuple[str, str]:
    html = _layout(
        "Reset your password",
        f"""
              <p style="color:#4a4a4a;font-size:14px;margin-bottom:24px;">
                Hi <b>{escape(first_name)}</b>, we received a request to reset the password
                on your {BRAND} account.
              </p>
        """ + _button(reset_link, "RESET PASSWORD"),
        f"This link expires in {ttl_minutes} minutes and can only be used once.<br/>"
        "If you didn't ask for a reset, your password has not been changed.",
    )
    text = (
        f"Hi {first_name},\n\n"
        f"Reset your {BRAND} password here:\n{reset_link}\n\n"
        f"The link expires in {ttl_minutes} minutes."
    )
    return html, text


def build_welcome_email(first_name: str, user_type: str, app_link: str, support_email: str) -> tuple[str, str]:
    if user_type == "agent":
        next_step = "An administrator will review your agent account before your listings go live."
    else:
        next_step = "You can now save searches and pay rent with M-Pesa from your dashboard."
    html = _layout(
        f"Welcome to {BRAND}",
        f"""
              <p style="color:#4a4a4a;font-size:14px;margin-bottom:24px;">
                Hi <b>{escape(first_name)}</b>, your email is verified. {next_step}
              </p>
        """ + _button(app_link, "OPEN REALTOR SPACE"),
        f"Questions? Write to {support_email}.",
    )
    text = f"Hi {first_name},\n\nYour email is verified. {next_step}\n\n{app_link}"
    return html, text


def build_verification_result_page(ok: bool, message: str, app_link: str) -> str:
    """Small standalone page shown after a verification link is clicked."""
    title = "Email verified" if ok else "Verification failed"
    return _layout(
        title,
        f"""
              <p style="color:#4a4a4a;font-size:14px;margin-bottom:24px;">{escape(message)}</p>
        """ + _button(app_link, "CONTINUE"),
        BRAND,
    )
