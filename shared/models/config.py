from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Describes one environment setting a client needs before it can talk to its backend.

    Attributes:
        env_key (str): The raw key, without the client type and engine prefix (e.g. "BASE_URL").
        val_type (str): The expected type of the value. Supported types are "string", "number" and "bool".
        default (str | int | float | bool | None): Fallback value. If None, the setting is mandatory.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | None = None
