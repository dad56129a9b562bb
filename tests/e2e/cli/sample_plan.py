"""Test plan used by the CLI tests, meant for the ``memory://`` backend."""

from podharness.domain.model import ApplicationConfig, ServiceConfig
from podharness.service_layer.registry import TestPlan, TestTable

APPLICATIONS = (
    ApplicationConfig(
        "shop",
        (
            ServiceConfig("api", "example/shop-api:1").with_env({"DB_HOST": "db"}),
            ServiceConfig("db", "example/shop-db:1"),
        ),
    ),
)

tests = TestTable()


@tests.test(app="shop", name="shop.db_has_address")
async def db_has_address(env):
    """The database is reachable on the test network."""
    assert (await env["db"].ip()).is_private


@tests.test(app="shop", name="shop.api_survives_db_partition")
async def api_survives_db_partition(env):
    """Partition the database away and back."""
    await env["db"].disconnect()
    await env["db"].connect()


@tests.test(app="shop", name="shop.checkout_total")
async def checkout_total(env):  # pylint: disable=unused-argument
    """Deliberately failing test."""
    raise AssertionError("expected total 42, got 41")


@tests.test(app="shop", ignore=True, name="shop.slow_report")
async def slow_report(env):  # pylint: disable=unused-argument
    """Ignored test."""
    raise AssertionError("never runs")


plan = TestPlan.from_table(APPLICATIONS, tests)


def passing_plan() -> TestPlan:
    """Plan without the failing test."""
    return TestPlan(
        APPLICATIONS,
        tuple(d for d in plan.declarations if d.name != "shop.checkout_total"),
    )


def broken_plan() -> TestPlan:
    """Plan whose only test targets an application that does not exist."""
    unknown = TestTable()
    unknown.add(db_has_address, app="warehouse", name="warehouse.db_has_address")
    return TestPlan.from_table(APPLICATIONS, unknown)
