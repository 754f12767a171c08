"""Tests for the dependency resolution engine."""

import json
import threading

import pytest

from dtmi import dtmi_to_path
from errors import (
    DtmiCasingError,
    ErrorKind,
    FetchTransportError,
    InvalidDtmiFormatError,
    ModelNotFoundError,
    ModelParseError,
)
from resolution import DependencyResolver, ResolutionStrategy

from sample_repository import (
    BASE_1,
    BASE_2,
    COLD_STORAGE,
    CONFERENCE_ROOM,
    CYCLE_A,
    CYCLE_B,
    DEVICE_INFO,
    FREEZER,
    INVALID_MODEL,
    MISSING_DEP,
    ROOM,
    TEMP_CONTROLLER,
    THERMOSTAT,
    DictFetcher,
    interface,
)


def _declared_root(content):
    return json.loads(content)["@id"]


def _assert_roots_match(result):
    for dtmi, content in result.items():
        assert _declared_root(content) == dtmi


class TestFullResolution:
    """Test ResolutionStrategy.FULL."""

    def test_single_model_no_dependencies(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([THERMOSTAT])

        assert list(result) == [THERMOSTAT]
        _assert_roots_match(result)

    def test_component_dependencies(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([TEMP_CONTROLLER])

        assert set(result) == {TEMP_CONTROLLER, THERMOSTAT, DEVICE_INFO}
        _assert_roots_match(result)

    def test_union_of_independent_closures(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([TEMP_CONTROLLER, COLD_STORAGE])

        assert set(result) == {TEMP_CONTROLLER, THERMOSTAT, DEVICE_INFO, COLD_STORAGE, ROOM, FREEZER}
        _assert_roots_match(result)

    def test_shared_extends_stored_once(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([CONFERENCE_ROOM, COLD_STORAGE])

        assert set(result) == {CONFERENCE_ROOM, COLD_STORAGE, ROOM, FREEZER}
        assert memory_fetcher.calls[dtmi_to_path(ROOM)] == 1

    def test_inline_extends_not_fetched(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([BASE_1])

        assert list(result) == [BASE_1]

    def test_inline_extends_variant(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([BASE_2])

        assert set(result) == {BASE_2, FREEZER, THERMOSTAT}

    def test_duplicate_inputs_collapse(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([DEVICE_INFO, DEVICE_INFO])

        assert list(result) == [DEVICE_INFO]
        assert memory_fetcher.calls[dtmi_to_path(DEVICE_INFO)] == 1

    def test_each_model_fetched_once(self, memory_fetcher):
        DependencyResolver(memory_fetcher).resolve([TEMP_CONTROLLER, THERMOSTAT, COLD_STORAGE, BASE_2])

        assert memory_fetcher.calls
        assert all(count == 1 for count in memory_fetcher.calls.values())

    def test_cycle_terminates(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([CYCLE_A])

        assert set(result) == {CYCLE_A, CYCLE_B}
        assert memory_fetcher.calls[dtmi_to_path(CYCLE_A)] == 1
        assert memory_fetcher.calls[dtmi_to_path(CYCLE_B)] == 1

    def test_single_worker_gives_same_result(self, memory_fetcher):
        concurrent = DependencyResolver(memory_fetcher).resolve([TEMP_CONTROLLER, COLD_STORAGE])
        sequential = DependencyResolver(DictFetcher(memory_fetcher.files), max_workers=1).resolve(
            [TEMP_CONTROLLER, COLD_STORAGE]
        )

        assert concurrent == sequential

    def test_deep_chain(self):
        chain = [f"dtmi:com:example:Level{i};1" for i in range(50)]
        files = {}
        for current, parent in zip(chain, chain[1:] + [None]):
            files[dtmi_to_path(current)] = json.dumps(interface(current, extends=parent))
        fetcher = DictFetcher(files)

        result = DependencyResolver(fetcher, max_workers=2).resolve([chain[0]])

        assert set(result) == set(chain)


class TestDisabledResolution:
    """Test ResolutionStrategy.DISABLED."""

    def test_only_requested_models(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([TEMP_CONTROLLER], ResolutionStrategy.DISABLED)

        assert list(result) == [TEMP_CONTROLLER]
        assert memory_fetcher.calls[dtmi_to_path(THERMOSTAT)] == 0

    def test_keys_subset_of_full(self, memory_fetcher):
        resolver = DependencyResolver(memory_fetcher)

        disabled = resolver.resolve([COLD_STORAGE], ResolutionStrategy.DISABLED)
        full = resolver.resolve([COLD_STORAGE], ResolutionStrategy.FULL)

        assert set(disabled) <= set(full)
        assert len(disabled) == 1

    def test_missing_dependency_ignored(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve([INVALID_MODEL], ResolutionStrategy.DISABLED)

        assert list(result) == [INVALID_MODEL]


class TestExpandedResolution:
    """Test ResolutionStrategy.TRY_FROM_EXPANDED."""

    def test_uses_expanded_document(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve(
            [TEMP_CONTROLLER], ResolutionStrategy.TRY_FROM_EXPANDED
        )

        assert set(result) == {TEMP_CONTROLLER, THERMOSTAT, DEVICE_INFO}
        _assert_roots_match(result)
        assert memory_fetcher.calls[dtmi_to_path(TEMP_CONTROLLER, expanded=True)] == 1
        assert memory_fetcher.calls[dtmi_to_path(TEMP_CONTROLLER)] == 0
        assert memory_fetcher.calls[dtmi_to_path(THERMOSTAT)] == 0

    def test_partial_availability(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve(
            [TEMP_CONTROLLER, COLD_STORAGE], ResolutionStrategy.TRY_FROM_EXPANDED
        )

        assert set(result) == {TEMP_CONTROLLER, THERMOSTAT, DEVICE_INFO, COLD_STORAGE, ROOM, FREEZER}
        _assert_roots_match(result)
        assert memory_fetcher.calls[dtmi_to_path(COLD_STORAGE, expanded=True)] == 1
        assert memory_fetcher.calls[dtmi_to_path(COLD_STORAGE)] == 1
        # Transitive dependencies never have their expanded documents fetched.
        assert memory_fetcher.calls[dtmi_to_path(ROOM, expanded=True)] == 0

    def test_requested_member_of_other_expanded_stored_once(self, memory_fetcher):
        result = DependencyResolver(memory_fetcher).resolve(
            [TEMP_CONTROLLER, THERMOSTAT], ResolutionStrategy.TRY_FROM_EXPANDED
        )

        assert set(result) == {TEMP_CONTROLLER, THERMOSTAT, DEVICE_INFO}
        assert memory_fetcher.calls[dtmi_to_path(THERMOSTAT)] == 0

    def test_expanded_missing_root_is_parse_error(self, repo_files):
        repo_files[dtmi_to_path(ROOM, expanded=True)] = json.dumps([interface(FREEZER)])
        fetcher = DictFetcher(repo_files)

        with pytest.raises(ModelParseError) as excinfo:
            DependencyResolver(fetcher).resolve([ROOM], ResolutionStrategy.TRY_FROM_EXPANDED)

        assert excinfo.value.dtmi == ROOM

    def test_expanded_wrong_casing(self, repo_files):
        fetcher = DictFetcher(repo_files)

        with pytest.raises(DtmiCasingError) as excinfo:
            DependencyResolver(fetcher).resolve(
                ["dtmi:com:example:temperatureController;1"], ResolutionStrategy.TRY_FROM_EXPANDED
            )

        assert excinfo.value.parsed == TEMP_CONTROLLER

    def test_expanded_transport_error_is_fatal(self, repo_files):
        path = dtmi_to_path(COLD_STORAGE, expanded=True)
        fetcher = DictFetcher(repo_files, errors={path: FetchTransportError(path, "connection reset")})

        with pytest.raises(FetchTransportError) as excinfo:
            DependencyResolver(fetcher).resolve([COLD_STORAGE], ResolutionStrategy.TRY_FROM_EXPANDED)

        assert excinfo.value.dtmi == COLD_STORAGE
        assert fetcher.calls[dtmi_to_path(COLD_STORAGE)] == 0


class TestResolutionErrors:
    """Test failure attribution."""

    def test_invalid_input_aborts_before_fetching(self, memory_fetcher):
        with pytest.raises(InvalidDtmiFormatError) as excinfo:
            DependencyResolver(memory_fetcher).resolve([THERMOSTAT, "dtmi:com:example:Thermostat:1"])

        assert excinfo.value.dtmi == "dtmi:com:example:Thermostat:1"
        assert not memory_fetcher.calls

    def test_missing_root_model(self, memory_fetcher):
        with pytest.raises(ModelNotFoundError) as excinfo:
            DependencyResolver(memory_fetcher).resolve(["dtmi:com:example:thermojax;999"])

        assert excinfo.value.dtmi == "dtmi:com:example:thermojax;999"
        assert excinfo.value.kind is ErrorKind.NOT_FOUND

    def test_missing_dependency_named(self, memory_fetcher):
        with pytest.raises(ModelNotFoundError) as excinfo:
            DependencyResolver(memory_fetcher).resolve([INVALID_MODEL])

        assert excinfo.value.dtmi == MISSING_DEP

    def test_wrong_casing(self, memory_fetcher):
        with pytest.raises(DtmiCasingError) as excinfo:
            DependencyResolver(memory_fetcher).resolve(["dtmi:com:example:thermostat;1"])

        assert excinfo.value.requested == "dtmi:com:example:thermostat;1"
        assert excinfo.value.parsed == THERMOSTAT

    def test_content_declaring_another_model(self, repo_files):
        repo_files[dtmi_to_path("dtmi:com:example:Impostor;1")] = json.dumps(interface(ROOM))
        fetcher = DictFetcher(repo_files)

        with pytest.raises(ModelNotFoundError, match="declares") as excinfo:
            DependencyResolver(fetcher).resolve(["dtmi:com:example:Impostor;1"])

        assert excinfo.value.dtmi == "dtmi:com:example:Impostor;1"

    def test_malformed_dependency(self, repo_files):
        repo_files[dtmi_to_path(ROOM)] = "{not json"
        fetcher = DictFetcher(repo_files)

        with pytest.raises(ModelParseError) as excinfo:
            DependencyResolver(fetcher).resolve([CONFERENCE_ROOM])

        assert excinfo.value.dtmi == ROOM
        assert excinfo.value.location == f"memory://{dtmi_to_path(ROOM)}"

    def test_invalid_dependency_identifier(self, repo_files):
        bad = "dtmi:com:example::Broken;1"
        repo_files[dtmi_to_path(ROOM)] = json.dumps(interface(ROOM, extends=bad))
        fetcher = DictFetcher(repo_files)

        with pytest.raises(InvalidDtmiFormatError) as excinfo:
            DependencyResolver(fetcher).resolve([ROOM])

        assert excinfo.value.dtmi == bad

    def test_transport_error_attributed_to_dependency(self, repo_files):
        path = dtmi_to_path(FREEZER)
        fetcher = DictFetcher(repo_files, errors={path: FetchTransportError(path, "boom")})

        with pytest.raises(FetchTransportError) as excinfo:
            DependencyResolver(fetcher).resolve([COLD_STORAGE])

        assert excinfo.value.dtmi == FREEZER
        assert excinfo.value.kind is ErrorKind.TRANSPORT_ERROR


class GatedFetcher(DictFetcher):
    """Fetcher whose gated path holds its worker, then fails, after the rest of the wave ran."""

    def __init__(self, files, gated_path, hold_seconds=0.5):
        super().__init__(files)
        self.gated_path = gated_path
        self.hold_seconds = hold_seconds
        self.released = threading.Event()

    def fetch(self, path):
        if path == self.gated_path:
            with self._lock:
                self.calls[path] += 1
            # Nothing sets the event; the wait only keeps this worker busy.
            self.released.wait(self.hold_seconds)
            raise FetchTransportError(path, "late failure")
        return super().fetch(path)


class TestFirstFailureWins:
    """Test that one failure stops the wave and is the only one reported."""

    MISSING = "dtmi:com:example:Missing;1"

    def test_queued_siblings_never_fetched(self, repo_files):
        fetcher = DictFetcher(repo_files)

        with pytest.raises(ModelNotFoundError) as excinfo:
            DependencyResolver(fetcher, max_workers=1).resolve(
                [self.MISSING, THERMOSTAT, DEVICE_INFO, ROOM, FREEZER]
            )

        assert excinfo.value.dtmi == self.MISSING
        assert fetcher.calls[dtmi_to_path(self.MISSING)] == 1
        for sibling in (THERMOSTAT, DEVICE_INFO, ROOM, FREEZER):
            assert fetcher.calls[dtmi_to_path(sibling)] == 0

    def test_in_flight_failure_not_reported(self, repo_files):
        fetcher = GatedFetcher(repo_files, gated_path=dtmi_to_path(THERMOSTAT))

        with pytest.raises(ModelNotFoundError) as excinfo:
            DependencyResolver(fetcher, max_workers=2).resolve(
                [THERMOSTAT, self.MISSING, DEVICE_INFO, ROOM, FREEZER]
            )

        assert excinfo.value.dtmi == self.MISSING
        assert fetcher.calls[dtmi_to_path(THERMOSTAT)] == 1
        for sibling in (DEVICE_INFO, ROOM, FREEZER):
            assert fetcher.calls[dtmi_to_path(sibling)] == 0

    def test_failure_in_later_wave_returns_nothing(self, repo_files):
        del repo_files[dtmi_to_path(FREEZER)]
        fetcher = DictFetcher(repo_files)
        resolver = DependencyResolver(fetcher, max_workers=1)
        result = None

        with pytest.raises(ModelNotFoundError) as excinfo:
            result = resolver.resolve([COLD_STORAGE, THERMOSTAT])

        assert result is None
        assert excinfo.value.dtmi == FREEZER
        assert fetcher.calls[dtmi_to_path(COLD_STORAGE)] == 1
