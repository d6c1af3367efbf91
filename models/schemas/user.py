from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError, EXCLUDE

from services.economy import MAX_AMOUNT
from services.progress import MAX_XP_GAIN


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _norm_username(v):
    return v.strip() if isinstance(v, str) else v


USERNAME = validate.Length(min=3, max=64)


class UserCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(required=True, validate=USERNAME)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            if "username" in data:
                data["username"] = _norm_username(data["username"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "username" in data:
            data = dict(data, username=_norm_username(data["username"]))
        return data


class UserUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(validate=USERNAME)
    email = fields.Email()
    password = fields.String(load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            # empty values mean "leave unchanged"
            data = {k: v for k, v in data.items() if v not in (None, "")}
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            if "username" in data:
                data["username"] = _norm_username(data["username"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class RefreshSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1),
        error_messages={"required": "Refresh token not provided."},
    )


class ProgressSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    xp_gained = fields.Integer(
        required=True, strict=True, data_key="xpGained", validate=validate.Range(min=0, max=MAX_XP_GAIN),
    )


class AmountSchema(Schema):
    """amount may arrive as a number or a numeric string; sign is checked by the ledger"""
    class Meta:
        unknown = EXCLUDE

    amount = fields.Integer(required=True, validate=validate.Range(max=MAX_AMOUNT))

    @pre_load
    def reject_fractions(self, data, **kwargs):
        # a non-strict Integer would truncate 2.9 to 2
        value = data.get("amount") if isinstance(data, dict) else None
        if isinstance(value, float) and not value.is_integer():
            raise ValidationError("Not a valid integer.", "amount")
        return data


class UserOutSchema(Schema):
    user_id = fields.String(attribute="id", data_key="userId")
    username = fields.String()
    email = fields.String()
    level = fields.Integer()
    experience = fields.Integer()
    gems = fields.Integer()


class ProgressOutSchema(Schema):
    username = fields.String()
    level = fields.Integer()
    experience = fields.Integer()
    required_xp = fields.Integer(data_key="requiredXp")
