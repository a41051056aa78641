"""Tests for the ServiceSelectionService facade (catalog + diff provider + selector)."""
import pytest

from ci_orchestrator.errors import InvalidServiceError
from ci_orchestrator.services.service_selector import ServiceSelectionService
from tests.fakes import StubDiffProvider


def make_service(test_settings, catalog, paths=()):
    diff = StubDiffProvider(paths)
    return ServiceSelectionService(settings=test_settings, catalog=catalog, diff_provider=diff), diff


@pytest.mark.asyncio
async def test_auto_asks_git_with_default_base_ref(test_settings, catalog):
    service, diff = make_service(test_settings, catalog, {"src/frontend/app.go", "src/cartservice/x.go"})

    result = await service.select("auto")

    assert result.services == ["cartservice", "frontend"]
    assert result.no_work is False
    assert result.base_ref == "main"
    assert result.changed_paths_count == 2
    assert diff.calls == ["main"]


@pytest.mark.asyncio
async def test_auto_uses_explicit_base_ref(test_settings, catalog):
    service, diff = make_service(test_settings, catalog)

    result = await service.select("auto", base_ref="release/1.2")

    assert diff.calls == ["release/1.2"]
    assert result.no_work is True
    assert result.services == []


@pytest.mark.asyncio
async def test_auto_with_supplied_paths_skips_git(test_settings, catalog):
    service, diff = make_service(test_settings, catalog)

    result = await service.select("auto", changed_paths=["src/adservice/Dockerfile", "src/unknownservice/x.go"])

    assert result.services == ["adservice"]
    assert result.ignored_candidates == ["unknownservice"]
    assert diff.calls == []


@pytest.mark.asyncio
async def test_docs_only_change_is_no_work(test_settings, catalog):
    service, _ = make_service(test_settings, catalog, {"docs/readme.md"})

    result = await service.select("auto")

    assert result.no_work is True
    assert result.services == []
    assert result.changed_paths_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("mode,expected", [
    ("all", ["adservice", "cartservice", "frontend"]),
    ("none", []),
    ("cartservice", ["cartservice"]),
])
async def test_non_auto_modes_never_touch_git(test_settings, catalog, mode, expected):
    service, diff = make_service(test_settings, catalog, {"src/frontend/app.go"})

    result = await service.select(mode)

    assert result.services == expected
    assert result.no_work is (not expected)
    assert result.base_ref is None
    assert diff.calls == []


@pytest.mark.asyncio
async def test_unknown_explicit_service_fails_before_git(test_settings, catalog):
    service, diff = make_service(test_settings, catalog)

    with pytest.raises(InvalidServiceError):
        await service.select("checkoutservice")
    assert diff.calls == []


@pytest.mark.asyncio
async def test_catalog_loaded_from_settings(test_settings, tmp_path):
    catalog_file = tmp_path / "services.yaml"
    catalog_file.write_text("services: [paymentservice, frontend]\n")
    test_settings.services_catalog_path = str(catalog_file)
    service = ServiceSelectionService(settings=test_settings, diff_provider=StubDiffProvider())

    result = await service.select("all")

    assert result.services == ["paymentservice", "frontend"]


def test_catalog_falls_back_to_default_services(test_settings):
    service = ServiceSelectionService(settings=test_settings)
    assert list(service.catalog) == ["adservice", "cartservice", "frontend"]


def test_default_diff_provider_uses_settings(test_settings):
    service = ServiceSelectionService(settings=test_settings)
    provider = service.diff_provider
    assert provider.repo_dir == test_settings.repo_dir
    assert provider.source_root == "src"
