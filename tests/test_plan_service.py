"""Tests for the plan catalog."""

import uuid

import pytest

from app.services.plan_service import PlanService
from app.utils.exceptions import ConflictException, NotFoundException, ValidationException

BASIC = {
    "plan_name": "Basic",
    "plan_type": "monthly",
    "price": 499,
    "duration": 30,
    "simulations_limit": 10,
    "features": ["Budget planner"],
}


class TestCreatePlan:
    @pytest.mark.asyncio
    async def test_create_with_defaults(self, db):
        plan = await PlanService(db).create_plan(dict(BASIC))

        assert plan.id is not None
        assert plan.is_active is True
        assert plan.active_plan is False
        assert plan.simulations_unlimited is False
        assert plan.stripe_price_id == ""
        assert plan.features == ["Budget planner"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["plan_name", "plan_type", "price", "duration"])
    async def test_required_fields(self, db, missing):
        data = dict(BASIC)
        data.pop(missing)
        with pytest.raises(ValidationException):
            await PlanService(db).create_plan(data)

    @pytest.mark.asyncio
    async def test_limit_or_unlimited_required(self, db):
        data = dict(BASIC)
        data.pop("simulations_limit")
        with pytest.raises(ValidationException):
            await PlanService(db).create_plan(data)

        data["simulations_unlimited"] = True
        plan = await PlanService(db).create_plan(data)
        assert plan.simulations_limit is None

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, db, pro_plan):
        data = dict(BASIC, plan_name="Pro")
        with pytest.raises(ConflictException):
            await PlanService(db).create_plan(data)


class TestReadUpdateDelete:
    @pytest.mark.asyncio
    async def test_list_and_get(self, db, pro_plan):
        service = PlanService(db)
        assert [p.plan_name for p in await service.list_plans()] == ["Pro"]
        assert (await service.get_plan(pro_plan.id)).plan_name == "Pro"

    @pytest.mark.asyncio
    async def test_get_unknown(self, db):
        with pytest.raises(NotFoundException):
            await PlanService(db).get_plan(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_partial_update_touches_only_given_fields(self, db, pro_plan):
        plan = await PlanService(db).update_plan(pro_plan.id, {"price": 1299, "is_active": False})

        assert plan.price == 1299
        assert plan.is_active is False
        assert plan.plan_name == "Pro"
        assert plan.stripe_price_id == "price_abc"

    @pytest.mark.asyncio
    async def test_update_cannot_drop_both_limit_and_unlimited(self, db, pro_plan):
        with pytest.raises(ValidationException):
            await PlanService(db).update_plan(pro_plan.id, {"simulations_limit": None})

    @pytest.mark.asyncio
    async def test_rename_to_existing_name_conflicts(self, db, pro_plan):
        service = PlanService(db)
        await service.create_plan(dict(BASIC))
        with pytest.raises(ConflictException):
            await service.update_plan(pro_plan.id, {"plan_name": "Basic"})

    @pytest.mark.asyncio
    async def test_delete(self, db, pro_plan):
        service = PlanService(db)
        await service.delete_plan(pro_plan.id)
        with pytest.raises(NotFoundException):
            await service.get_plan(pro_plan.id)
