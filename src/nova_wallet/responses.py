"""Pydantic models for the JSON bodies returned by the Nova services."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class TokenContents(BaseModel):
    token: str


class TokenCreatedResponse(BaseModel):
    code: int = 201
    contents: TokenContents


class AddressContents(BaseModel):
    address: str
    cardano: str
    evm: str
    solana: str
    sui: str
    tron: str


class AddressResponse(BaseModel):
    code: int = 200
    contents: AddressContents


class BalanceContents(BaseModel):
    balance: Decimal


class BalanceResponse(BaseModel):
    code: int = 200
    contents: BalanceContents


class LinkCreatedContents(BaseModel):
    address: str
    token: str


class LinkCreatedResponse(BaseModel):
    code: int = 200
    contents: LinkCreatedContents


class GenerateContents(BaseModel):
    address: str


class GenerateResponse(BaseModel):
    code: int = 200
    contents: GenerateContents


class RateLimitedContents(BaseModel):
    retryAfterSeconds: float


class RateLimited(BaseModel):
    code: Literal[429]
    contents: RateLimitedContents


class ValidationErrorItem(BaseModel):
    message: str


class ValidationErrorContents(BaseModel):
    errors: list[ValidationErrorItem] = Field(min_length=1)


class ValidationErrorResponse(BaseModel):
    code: Literal[400]
    contents: ValidationErrorContents
