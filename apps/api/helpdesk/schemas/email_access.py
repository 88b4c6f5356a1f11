"""Email-access and SMTP email schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class EmailAccessRequest(BaseModel):
    """Field names follow the camelCase wire format of the caller."""
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr | None = None
    password: str | None = None
    login_url: str | None = Field(default=None, alias="loginUrl")
    company_name: str | None = Field(default=None, alias="companyName")
    client_name: str | None = Field(default=None, alias="clientName")

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SmtpEmailRequest(BaseModel):
    """Raw HTML message relayed through the SMTP transport."""
    model_config = ConfigDict(populate_by_name=True)

    to: EmailStr | None = None
    subject: str | None = None
    html: str | None = None
    from_address: str | None = Field(default=None, alias="from")

    @field_validator("to", mode="before")
    @classmethod
    def _blank_to(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
