"""Pydantic request/response models for the lanwake API."""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class WakeRequest(BaseModel):
    mac: str = ""
    host: str = ""
    cidr: Union[int, str, None] = ""
    port: Union[int, str, None] = ""


class WakeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    info: str
    csrf_token: str = Field(alias="csrfToken")
    debug: Optional[list[str]] = Field(default=None, alias="DEBUG")


class ConfigSavedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "OK"
    csrf_token: str = Field(alias="csrfToken")


class CsrfResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    csrf_token: str = Field(alias="csrfToken")


class HostCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: bool = False
    is_up: bool = Field(alias="isUp")
    info: Optional[str] = None
    err_code: Optional[int] = Field(default=None, alias="errCode")
    err_str: Optional[str] = Field(default=None, alias="errStr")
    error_port: Optional[int] = Field(default=None, alias="errorPort")
