# app/admin.py
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import select

from app.core.config import settings
from app.core.security import verify_password
from app.db.session import engine, SessionLocal
from app.models.email_verification_token import EmailVerificationToken
from app.models.location import County, SubCounty
from app.models.password_reset_token import PasswordResetToken
from app.models.payment_attempt import PaymentAttempt
from app.models.property import Property
from app.models.user import User, UserType


class AdminAuth(AuthenticationBackend):
    async def login(self, request):
        form = await request.form()
        email = (form.get("username") or "").strip().lower()
        password = form.get("password") or ""
        db = SessionLocal()
        try:
            user = db.execute(
                select(User).where(
                    User.email == email,
                    User.is_active.is_(True),
                    User.user_type == UserType.ADMIN.value,
                )
            ).scalar_one_or_none()

            if user and verify_password(password, user.hashed_password):
                request.session["authenticated"] = True
                request.session["admin_user_id"] = user.id
                return True
            return False
        finally:
            db.close()

    async def authenticate(self, request):
        return bool(request.session.get("authenticated"))

    async def logout(self, request):
        request.session.clear()
        return True


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"
    column_list = [
        User.id, User.email, User.phone_number, User.first_name, User.last_name,
        User.user_type, User.is_active, User.is_verified, User.is_approved, User.created_at,
    ]
    column_searchable_list = [User.email, User.phone_number, User.last_name]
    column_sortable_list = [User.id, User.created_at, User.user_type]
    form_excluded_columns = ["hashed_password", "created_at", "updated_at"]


class PropertyAdmin(ModelView, model=Property):
    name = "Property"
    name_plural = "Properties"
    icon = "fa-solid fa-house-chimney"
    category = "Listings"
    column_list = [
        Property.id,
        Property.title,
        Property.property_type,
        Property.rent_amount,
        Property.county_id,
        Property.agent_id,
        Property.is_available,
        Property.created_at,
    ]
    column_searchable_list = [Property.title, Property.location_details]
    column_sortable_list = [Property.id, Property.rent_amount, Property.created_at]
    column_formatters = {
        Property.agent_id: lambda m, a: f"{m.agent_id} ({getattr(m.agent, 'email', '')})",
        Property.county_id: lambda m, a: f"{m.county_id} ({getattr(m.county, 'name', '')})",
    }


class CountyAdmin(ModelView, model=County):
    name = "County"
    name_plural = "Counties"
    icon = "fa-solid fa-map"
    category = "Listings"
    column_list = [County.id, County.code, County.name]
    column_searchable_list = [County.name, County.code]
    column_sortable_list = [County.code, County.name]
    form_excluded_columns = ["sub_counties"]


class SubCountyAdmin(ModelView, model=SubCounty):
    name = "Sub-county"
    name_plural = "Sub-counties"
    icon = "fa-solid fa-map-pin"
    category = "Listings"
    column_list = [SubCounty.id, SubCounty.county_id, SubCounty.name]
    column_searchable_list = [SubCounty.name]


class PaymentAttemptAdmin(ModelView, model=PaymentAttempt):
    name = "Payment Attempt"
    name_plural = "Payment Attempts"
    icon = "fa-solid fa-money-bill-wave"
    category = "Payments"
    column_list = [
        PaymentAttempt.id,
        PaymentAttempt.lease_reference,
        PaymentAttempt.amount,
        PaymentAttempt.phone_number,
        PaymentAttempt.payment_type,
        PaymentAttempt.status,
        PaymentAttempt.checkout_request_id,
        PaymentAttempt.provider_transaction_id,
        PaymentAttempt.created_at,
    ]
    column_searchable_list = [
        PaymentAttempt.lease_reference, PaymentAttempt.checkout_request_id, PaymentAttempt.phone_number,
    ]
    column_sortable_list = [PaymentAttempt.id, PaymentAttempt.created_at, PaymentAttempt.status]
    can_create = False
    can_edit = False
    can_delete = False


# Token tables are read-only and never show the token value
class EmailVerificationTokenAdmin(ModelView, model=EmailVerificationToken):
    name = "Email Verification Token"
    name_plural = "Email Verification Tokens"
    icon = "fa-solid fa-envelope-circle-check"
    category = "Auth"
    column_list = [
        EmailVerificationToken.id,
        EmailVerificationToken.user_id,
        EmailVerificationToken.is_used,
        EmailVerificationToken.created_at,
        EmailVerificationToken.expires_at,
        EmailVerificationToken.used_at,
    ]
    column_details_exclude_list = [EmailVerificationToken.token]
    column_sortable_list = [
        EmailVerificationToken.id,
        EmailVerificationToken.created_at,
        EmailVerificationToken.expires_at,
        EmailVerificationToken.is_used,
    ]
    column_formatters = {
        EmailVerificationToken.user_id: lambda m, a: f"{m.user_id} ({getattr(m.user, 'email', '')})"
    }
    can_create = False
    can_edit = False
    can_delete = False


class PasswordResetTokenAdmin(ModelView, model=PasswordResetToken):
    name = "Password Reset Token"
    name_plural = "Password Reset Tokens"
    icon = "fa-solid fa-key"
    category = "Auth"
    column_list = [
        PasswordResetToken.id,
        PasswordResetToken.user_id,
        PasswordResetToken.is_used,
        PasswordResetToken.created_at,
        PasswordResetToken.expires_at,
        PasswordResetToken.used_at,
    ]
    column_details_exclude_list = [PasswordResetToken.token]
    column_formatters = {
        PasswordResetToken.user_id: lambda m, a: f"{m.user_id} ({getattr(m.user, 'email', '')})"
    }
    can_create = False
    can_edit = False
    can_delete = False


ADMIN_VIEWS = [
    UserAdmin,
    PropertyAdmin,
    CountyAdmin,
    SubCountyAdmin,
    PaymentAttemptAdmin,
    EmailVerificationTokenAdmin,
    PasswordResetTokenAdmin,
]


def mount_admin(app) -> Admin:
    auth_backend = AdminAuth(secret_key=settings.admin_console_secret)
    admin = Admin(
        app=app,
        engine=engine,
        title=f"{settings.app_name} Admin",
        authentication_backend=auth_backend,
    )
    for view in ADMIN_VIEWS:
        admin.add_view(view)
    return admin
