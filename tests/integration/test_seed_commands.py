"""
Tests for the seeding CLI
"""

import pytest
import yaml
from typer.testing import CliRunner

from app.cli.seed_commands import SEED_DIR, app, seed_categories, seed_locations

runner = CliRunner()


def load(name: str) -> dict:
    with open(SEED_DIR / name, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.mark.asyncio
async def test_seed_default_category_tree(db_session, category_service):
    nodes = load("categories.yaml")["categories"]

    created = await seed_categories(db_session, nodes)
    assert created > len(nodes)

    tree = await category_service.get_tree()
    assert [root.name for root in tree] == [node["name"] for node in nodes]

    electronics = next(root for root in tree if root.slug == "electronics")
    assert "smartphones" in [child.slug for child in electronics.children]
    assert electronics.attributes["brand"]["type"] == "select"

    # Re-running only skips existing slugs
    assert await seed_categories(db_session, nodes) == 0


@pytest.mark.asyncio
async def test_seed_default_locations(db_session, location_service):
    created = await seed_locations(db_session, load("locations.yaml")["countries"])
    assert created > 0

    result = await location_service.get_suggestions("Kaunas")
    assert result.local_count == 1


def test_detect_region_command():
    result = runner.invoke(app, ["detect-region", "Stockholm"])

    assert result.exit_code == 0
    assert "nordic" in result.stdout
