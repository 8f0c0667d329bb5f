"""
Data models for the Tetto SDK.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Token = Literal["SOL", "USDC"]

# Tolerated client clock drift when checking payment intent expiry locally.
EXPIRY_LEEWAY = timedelta(seconds=5)


class OwnerInfo(BaseModel):
    """Studio/developer that owns an agent"""
    model_config = ConfigDict(frozen=True)

    display_name: str
    avatar_url: Optional[str] = None
    verified: bool = False
    studio_slug: Optional[str] = None
    bio: Optional[str] = None


class ExampleInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    input: Dict[str, Any]
    description: Optional[str] = None


class AgentDescriptor(BaseModel):
    """Marketplace metadata for a callable agent"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str] = None
    endpoint_url: Optional[str] = None
    price_display: float
    price_base: int
    token: str
    token_mint: str
    token_decimals: int
    input_schema: Dict[str, Any] = Field(default_factory=dict)
    output_schema: Dict[str, Any] = Field(default_factory=dict)
    owner_wallet: str
    owner: Optional[OwnerInfo] = None
    fee_bps: Optional[int] = None
    status: str = "active"
    created_at: Optional[str] = None
    example_inputs: Optional[List[ExampleInput]] = None
    is_beta: bool = False


class AgentMetadata(BaseModel):
    """Agent registration payload"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    endpoint: str = Field(..., min_length=1)
    input_schema: Dict[str, Any]
    output_schema: Dict[str, Any]
    price_usdc: float = Field(..., gt=0)
    owner_wallet: str = Field(..., min_length=1)
    token_mint: Optional[Token] = None
    example_inputs: Optional[List[ExampleInput]] = None
    is_beta: bool = False

    def to_payload(self) -> Dict[str, Any]:
        """Map to the field names the register endpoint expects."""
        return {
            "name": self.name,
            "description": self.description,
            "endpoint_url": self.endpoint,
            "input_schema": self.input_schema,
            "output_schema": self.output_schema,
            "price_usdc": self.price_usdc,
            "owner_wallet_pubkey": self.owner_wallet,
            "token_mint": self.token_mint,
            "example_inputs": (
                [example.model_dump() for example in self.example_inputs]
                if self.example_inputs is not None else None
            ),
            "is_beta": self.is_beta,
        }


class ReceiptAgent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str] = None


class Receipt(BaseModel):
    """Settlement receipt stored by the gateway"""
    model_config = ConfigDict(frozen=True)

    id: str
    agent: ReceiptAgent
    caller_wallet: str
    payout_wallet: Optional[str] = None
    token: str
    amount_display: float
    protocol_fee_display: float = 0
    input_hash: Optional[str] = None
    output_hash: Optional[str] = None
    output_data: Dict[str, Any] = Field(default_factory=dict)
    tx_signature: str
    explorer_url: Optional[str] = None
    verified_at: Optional[str] = None
    created_at: Optional[str] = None


class CallOptions(BaseModel):
    """Per-call options for :meth:`TettoClient.call_agent`"""
    preferred_token: Optional[Token] = None
    # Accepted for compatibility; the gateway always confirms settlement.
    skip_confirmation: bool = False


class PaymentIntent(BaseModel):
    """
    Server-issued, time-bounded authorization to pay one agent for one input.

    The client never changes an intent; it is handed from the build step to
    the submit step as-is.
    """
    model_config = ConfigDict(frozen=True)

    payment_intent_id: str
    agent_id: str
    payer_wallet: str
    transaction: str  # base64, unsigned
    amount_base: int
    token: str
    expires_at: Optional[datetime] = None
    input_hash: Optional[str] = None

    def is_expired(self, now: Optional[datetime] = None, leeway: timedelta = EXPIRY_LEEWAY) -> bool:
        """
        Whether the intent is past ``expires_at`` by more than ``leeway``.

        The check uses the local clock. ``leeway`` absorbs a client clock that
        runs slightly ahead of the gateway's; the gateway still makes the
        final decision on submit.
        """
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at + leeway


class CallOutcome(BaseModel):
    """Result of a settled agent call"""
    model_config = ConfigDict(frozen=True)

    output: Any = Field(default_factory=dict)
    tx_signature: str
    receipt_id: str
    explorer_url: str = ""
    agent_received: float = 0
    protocol_fee: float = 0
    message: str = ""
    payment_intent_id: Optional[str] = None
