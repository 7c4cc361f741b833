"""
CLI commands for seeding reference data and inspecting the engines
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table
from rich.tree import Tree
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.cache import InMemoryCache
from app.core.database import db_manager, init_db
from app.core.locations_config import PROJECT_ROOT, get_locations_config
from app.core.logging import log, setup_logging
from app.models.location import City, Country, State
from app.repositories import CategoryRepository, CityRepository, LocationCacheRepository
from app.schemas.category import CategoryCreate, CategoryTree
from app.services import CategoryService, HybridLocationService, get_places_service
from app.services.location_providers import detect_query_region
from app.utils.normalization import slugify

app = typer.Typer(help="Marketplace data management")
console = Console()

SEED_DIR = PROJECT_ROOT / "configs" / "seed"


def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


async def seed_categories(session: AsyncSession, nodes: List[Dict[str, Any]], parent_id: Optional[int] = None) -> int:
    """Create the given category nodes and their children; existing slugs are skipped"""
    service = CategoryService(CategoryRepository(session), InMemoryCache())
    created = 0

    for position, node in enumerate(nodes, start=1):
        node = dict(node)
        children = node.pop("children", [])
        node.setdefault("sort_order", position)
        slug = node.get("slug") or slugify(node["name"])

        existing = await service.category_repo.get_by_slug(slug, active_only=False)
        if existing:
            category_id = existing.id
        else:
            category = await service.create(CategoryCreate(parent_id=parent_id, **node))
            category_id = category.id
            created += 1

        created += await seed_categories(session, children, category_id)

    return created


async def seed_locations(session: AsyncSession, countries: List[Dict[str, Any]]) -> int:
    """Insert countries, states and cities that are not present yet; returns new cities"""
    created = 0

    for country_data in countries:
        result = await session.exec(select(Country).where(Country.code == country_data["code"]))
        country = result.first()
        if country is None:
            country = Country(**{k: v for k, v in country_data.items() if k != "states"})
            session.add(country)
            await session.flush()

        for state_data in country_data.get("states", []):
            result = await session.exec(
                select(State).where(State.country_id == country.id, State.name == state_data["name"])
            )
            state = result.first()
            if state is None:
                state = State(
                    country_id=country.id,
                    name=state_data["name"],
                    code=state_data.get("code"),
                    type=state_data.get("type", "state"),
                )
                session.add(state)
                await session.flush()

            for city_data in state_data.get("cities", []):
                result = await session.exec(
                    select(City).where(City.state_id == state.id, City.name == city_data["name"])
                )
                if result.first() is not None:
                    continue
                session.add(
                    City(
                        state_id=state.id,
                        country_id=country.id,
                        name=city_data["name"],
                        latitude=city_data.get("lat"),
                        longitude=city_data.get("lng"),
                        population=city_data.get("pop"),
                    )
                )
                created += 1

    await session.commit()
    return created


def _add_branch(tree: Tree, node: CategoryTree) -> None:
    label = f"[bold]{node.name}[/bold] [dim]({node.slug})[/dim]"
    if not node.is_active:
        label += " [red]inactive[/red]"
    if node.attributes:
        label += f" [cyan]{len(node.attributes)} attributes[/cyan]"
    branch = tree.add(label)
    for child in node.children:
        _add_branch(branch, child)


@app.callback()
def main():
    setup_logging()


@app.command("init-db")
def init_db_command():
    """Create all tables"""
    asyncio.run(init_db())
    console.print("✅ Database tables created", style="green")


@app.command("seed-categories")
def seed_categories_command(
    path: Path = typer.Option(SEED_DIR / "categories.yaml", help="Category tree YAML file"),
):
    """Seed the default category tree"""

    async def run() -> int:
        async with db_manager.session() as session:
            return await seed_categories(session, _load_yaml(path).get("categories", []))

    created = asyncio.run(run())
    log.info("Seeded categories", created=created, path=str(path))
    console.print(f"✅ Created {created} categories", style="green")


@app.command("seed-locations")
def seed_locations_command(
    path: Path = typer.Option(SEED_DIR / "locations.yaml", help="Countries/states/cities YAML file"),
):
    """Seed countries, states and cities"""

    async def run() -> int:
        async with db_manager.session() as session:
            return await seed_locations(session, _load_yaml(path).get("countries", []))

    created = asyncio.run(run())
    log.info("Seeded locations", created=created, path=str(path))
    console.print(f"✅ Created {created} cities", style="green")


@app.command()
def show_tree(all_categories: bool = typer.Option(False, "--all", help="Include inactive categories")):
    """Print the category tree"""

    async def run() -> List[CategoryTree]:
        async with db_manager.session() as session:
            service = CategoryService(CategoryRepository(session), InMemoryCache())
            return await service.get_tree(active_only=not all_categories)

    tree = Tree("📂 Categories")
    for root in asyncio.run(run()):
        _add_branch(tree, root)
    console.print(tree)


@app.command()
def suggest(
    query: str = typer.Argument(..., help="Partial place name"),
    limit: int = typer.Option(10, help="Maximum suggestions"),
):
    """Run the location suggestion pipeline for a query"""

    async def run():
        async with db_manager.session() as session:
            service = HybridLocationService(
                CityRepository(session),
                LocationCacheRepository(session),
                get_places_service(),
                get_locations_config(),
            )
            return await service.get_suggestions(query, limit)

    result = asyncio.run(run())

    table = Table(title=f"Suggestions for '{query}' ({result.source}, region {result.region})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Details")
    table.add_column("Type")
    table.add_column("Source", style="yellow")
    table.add_column("Score", justify="right")
    for suggestion in result.data:
        table.add_row(
            suggestion.id,
            suggestion.main_text,
            suggestion.secondary_text,
            suggestion.type.value,
            suggestion.source.value,
            f"{suggestion.score:.1f}" if suggestion.score is not None else "",
        )
    console.print(table)


@app.command()
def detect_region(query: str = typer.Argument(..., help="Free-text location query")):
    """Show which configured region a query resolves to"""
    config = get_locations_config()

    key = detect_query_region(query, config)
    region = config.regions.get(key)
    console.print(f"🌍 [bold]{key}[/bold]" + (f" - {region.name}: {', '.join(region.countries)}" if region else ""))


if __name__ == "__main__":
    app()
