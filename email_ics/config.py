from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings

from email_ics.domain.schemas.event import DEFAULT_TIMEZONE, Method, is_valid_timezone
from email_ics.services.ics.duration import AllDayEndPolicy
from email_ics.services.ics.uid import UidPolicy

DEFAULT_PRODID = "-//Email-to-ICS//Python//EN"
DEFAULT_UID_DOMAIN_SUFFIX = "email-to-ics.local"


class Settings(BaseSettings):
    ENV: str = "development"
    DEFAULT_TIMEZONE: str = DEFAULT_TIMEZONE
    PRODID: str = DEFAULT_PRODID
    ICS_METHOD: Method = Method.PUBLISH
    UID_DOMAIN_SUFFIX: str = DEFAULT_UID_DOMAIN_SUFFIX
    UID_POLICY: UidPolicy = UidPolicy.CONTENT_HASH
    ALL_DAY_END_POLICY: AllDayEndPolicy = AllDayEndPolicy.NEXT_DAY
    FROM_EMAIL: str | None = None


class IcsConfig(BaseModel):
    """Engine configuration, passed explicitly to ``IcsEngine``."""

    model_config = ConfigDict(frozen=True)

    default_timezone: str = DEFAULT_TIMEZONE
    prod_id: str = DEFAULT_PRODID
    method: Method = Method.PUBLISH
    uid_domain_suffix: str = DEFAULT_UID_DOMAIN_SUFFIX
    uid_policy: UidPolicy = UidPolicy.CONTENT_HASH
    all_day_end_policy: AllDayEndPolicy = AllDayEndPolicy.NEXT_DAY
    from_email: str | None = None

    @field_validator("default_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @classmethod
    def from_settings(cls, source: Settings) -> "IcsConfig":
        return cls(
            default_timezone=source.DEFAULT_TIMEZONE,
            prod_id=source.PRODID,
            method=source.ICS_METHOD,
            uid_domain_suffix=source.UID_DOMAIN_SUFFIX,
            uid_policy=source.UID_POLICY,
            all_day_end_policy=source.ALL_DAY_END_POLICY,
            from_email=source.FROM_EMAIL,
        )


settings = Settings()
