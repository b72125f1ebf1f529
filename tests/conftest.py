import sys
from pathlib import Path

import pytest


def _add_repo_root_to_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_add_repo_root_to_path()

from catalog import Material, MaterialClass, MaterialThickness, Option, OptionType  # noqa: E402


@pytest.fixture
def lauan():
    return Material(id="mat-lauan", name="ラワン合板", material_class=MaterialClass.PLYWOOD_LAUAN)


@pytest.fixture
def softwood():
    return Material(id="mat-softwood", name="針葉樹構造用合板", material_class=MaterialClass.PLYWOOD_STANDARD)


@pytest.fixture
def thickness(lauan):
    # 10 yen per mm of width + depth + height
    return MaterialThickness(id="mat-lauan-t9", material_id=lauan.id, thickness_mm=9, price=10, size=1)


@pytest.fixture
def handle():
    return Option(id="opt-handle", name="Rope handle", option_type=OptionType.HANDLE, price=800)


@pytest.fixture
def reinforcement():
    return Option(id="opt-reinforcement", name="Reinforcement board", option_type=OptionType.REINFORCEMENT, price=2000)


@pytest.fixture
def express():
    return Option(id="opt-express", name="Express production", option_type=OptionType.EXPRESS, price=5)


@pytest.fixture
def db():
    import order_store

    order_store.configure_database("sqlite://")
    session = order_store.SessionLocal()
    yield session
    session.close()
    order_store.engine.dispose()
