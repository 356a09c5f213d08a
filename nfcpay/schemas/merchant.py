from pydantic import BaseModel, ConfigDict


class MerchantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    merchant_name: str
    merchant_code: str
    category: str
    is_active: bool


class CodeAvailability(BaseModel):
    merchant_code: str
    available: bool
