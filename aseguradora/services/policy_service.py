"""
Policy persistence service.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from aseguradora.models.policy import Policy, InsuranceType


logger = logging.getLogger(__name__)

# Fields a client may set on create/update
UPDATABLE_FIELDS = ("policy_number", "insurance_type", "policy_holder", "insured_amount")


class DuplicatePolicyNumberError(Exception):
    """Raised when a write would break policy number uniqueness."""

    def __init__(self, policy_number: Optional[str]):
        self.policy_number = policy_number
        super().__init__(f"Policy number already exists: {policy_number}")


class PolicyService:
    """Service for managing insurance policies."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_policy(
        self,
        policy_number: str,
        insurance_type: InsuranceType,
        policy_holder: str,
        insured_amount: float,
    ) -> Policy:
        """
        Create a new policy.

        Args:
            policy_number: Unique policy number
            insurance_type: Kind of insurance
            policy_holder: Name of the policy holder
            insured_amount: Amount covered by the policy

        Returns:
            The created policy.

        Raises:
            DuplicatePolicyNumberError: If the policy number is already taken.
        """
        policy = Policy(
            policy_number=policy_number,
            insurance_type=InsuranceType(insurance_type),
            policy_holder=policy_holder,
            insured_amount=insured_amount,
        )

        self.session.add(policy)
        await self._commit(policy_number)
        await self.session.refresh(policy)

        logger.info(f"Created policy {policy.id} ({policy.policy_number})")
        return policy

    async def list_policies(self) -> List[Policy]:
        """Return all policies in insertion order."""
        result = await self.session.execute(select(Policy).order_by(Policy.created_at))
        return list(result.scalars().all())

    async def get_policy(self, policy_id: str) -> Optional[Policy]:
        """
        Get a policy by ID.

        Returns:
            The policy or None.
        """
        result = await self.session.execute(
            select(Policy).where(Policy.id == policy_id)
        )
        return result.scalar_one_or_none()

    async def update_policy(self, policy_id: str, **changes: Any) -> Optional[Policy]:
        """
        Update a policy in place.

        Only the fields passed in ``changes`` are modified; the others keep
        their stored values.

        Args:
            policy_id: The policy ID
            **changes: Any of policy_number, insurance_type, policy_holder,
                insured_amount

        Returns:
            The updated policy or None if not found.

        Raises:
            DuplicatePolicyNumberError: If the new policy number is already taken.
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown policy fields: {', '.join(sorted(unknown))}")
        if any(value is None for value in changes.values()):
            raise ValueError("Policy fields cannot be set to None")

        policy = await self.get_policy(policy_id)
        if not policy:
            return None

        if "insurance_type" in changes:
            changes["insurance_type"] = InsuranceType(changes["insurance_type"])

        for name, value in changes.items():
            setattr(policy, name, value)

        await self._commit(changes.get("policy_number"))
        await self.session.refresh(policy)
        return policy

    async def delete_policy(self, policy_id: str) -> bool:
        """
        Permanently delete a policy.

        Returns:
            True if deleted, False if not found.
        """
        policy = await self.get_policy(policy_id)
        if not policy:
            return False

        await self.session.delete(policy)
        await self.session.commit()

        logger.info(f"Deleted policy {policy_id}")
        return True

    async def _commit(self, policy_number: Optional[str]) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            message = str(e.orig).lower()
            if "unique" not in message and "duplicate" not in message:
                raise
            logger.warning(f"Rejected duplicate policy number: {policy_number}")
            raise DuplicatePolicyNumberError(policy_number) from e
