"""
Policy API routes.
"""

from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from aseguradora.models.policy import Policy, InsuranceType
from aseguradora.services.policy_service import PolicyService


router = APIRouter(prefix="/api/policies", tags=["policies"])


# Set by the application on startup
_session_factory = None


def set_dependencies(session_factory):
    """Set the dependencies for the policy routes."""
    global _session_factory
    _session_factory = session_factory


# ============== Request/Response Models ==============

def _require_number(value):
    # bool is an int subclass and numeric strings coerce in lax mode
    if isinstance(value, (bool, str)):
        raise ValueError("Input should be a number")
    return value


class PolicyCreateRequest(BaseModel):
    """Request to create a policy."""
    model_config = ConfigDict(populate_by_name=True)

    policy_number: str = Field(alias="policyNumber", min_length=1)
    insurance_type: InsuranceType = Field(alias="insuranceType")
    policy_holder: str = Field(alias="policyHolder", min_length=1)
    insured_amount: float = Field(alias="insuredAmount", allow_inf_nan=False)

    @field_validator("insured_amount", mode="before")
    @classmethod
    def check_amount(cls, value):
        return _require_number(value)


class PolicyUpdateRequest(BaseModel):
    """Request to update a policy. Omitted fields are left unchanged."""
    model_config = ConfigDict(populate_by_name=True)

    policy_number: Optional[str] = Field(default=None, alias="policyNumber", min_length=1)
    insurance_type: Optional[InsuranceType] = Field(default=None, alias="insuranceType")
    policy_holder: Optional[str] = Field(default=None, alias="policyHolder", min_length=1)
    insured_amount: Optional[float] = Field(default=None, alias="insuredAmount", allow_inf_nan=False)

    @field_validator("insured_amount", mode="before")
    @classmethod
    def check_amount(cls, value):
        return _require_number(value)

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        fields = type(self).model_fields
        nulls = sorted(
            fields[name].alias or name
            for name in self.model_fields_set
            if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class PolicyResponse(BaseModel):
    """Policy as returned by the API."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    policy_number: str = Field(alias="policyNumber")
    insurance_type: InsuranceType = Field(alias="insuranceType")
    policy_holder: str = Field(alias="policyHolder")
    insured_amount: float = Field(alias="insuredAmount")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class MessageResponse(BaseModel):
    message: str


def _to_response(policy: Policy) -> PolicyResponse:
    return PolicyResponse(
        id=policy.id,
        policy_number=policy.policy_number,
        insurance_type=policy.insurance_type,
        policy_holder=policy.policy_holder,
        insured_amount=policy.insured_amount,
        created_at=policy.created_at,
        updated_at=policy.updated_at,
    )


def _require_session_factory():
    if not _session_factory:
        raise HTTPException(status_code=503, detail="Service not configured")
    return _session_factory


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Policy not found")


# ============== Policy Routes ==============

@router.post("", response_model=PolicyResponse, status_code=201)
@router.post("/", response_model=PolicyResponse, status_code=201, include_in_schema=False)
async def create_policy(body: PolicyCreateRequest):
    """
    Create a new policy.

    Fails with 400 when the body is invalid or the policy number is taken.
    """
    session_factory = _require_session_factory()

    async with session_factory() as session:
        service = PolicyService(session)
        policy = await service.create_policy(
            policy_number=body.policy_number,
            insurance_type=body.insurance_type,
            policy_holder=body.policy_holder,
            insured_amount=body.insured_amount,
        )
        return _to_response(policy)


@router.get("", response_model=List[PolicyResponse])
@router.get("/", response_model=List[PolicyResponse], include_in_schema=False)
async def list_policies():
    """
    List all policies.
    """
    session_factory = _require_session_factory()

    async with session_factory() as session:
        service = PolicyService(session)
        policies = await service.list_policies()
        return [_to_response(policy) for policy in policies]


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(policy_id: str):
    """
    Get a single policy by ID.
    """
    session_factory = _require_session_factory()

    async with session_factory() as session:
        service = PolicyService(session)
        policy = await service.get_policy(policy_id)

        if not policy:
            raise _not_found()

        return _to_response(policy)


@router.put("/{policy_id}", response_model=PolicyResponse)
async def update_policy(policy_id: str, body: PolicyUpdateRequest):
    """
    Update a policy.

    Only the fields present in the body are changed (last write wins).
    """
    session_factory = _require_session_factory()

    async with session_factory() as session:
        service = PolicyService(session)
        policy = await service.update_policy(policy_id, **body.model_dump(exclude_unset=True))

        if not policy:
            raise _not_found()

        return _to_response(policy)


@router.delete("/{policy_id}", response_model=MessageResponse)
async def delete_policy(policy_id: str):
    """
    Permanently delete a policy.
    """
    session_factory = _require_session_factory()

    async with session_factory() as session:
        service = PolicyService(session)
        deleted = await service.delete_policy(policy_id)

        if not deleted:
            raise _not_found()

        return MessageResponse(message="Policy deleted")
