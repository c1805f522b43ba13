import unittest

from layerbind import Provider, make_injector


class TestAddProviders(unittest.TestCase):
    def setUp(self):
        self.injector = make_injector([Provider("A", use_value=42), Provider("B", use_value="b")])

    def test_override_then_undo_restores_value(self):
        assert self.injector.get("A") == 42

        undo = self.injector.add_providers([Provider("A", use_value=99)])
        assert self.injector.get("A") == 99

        undo()
        assert self.injector.get("A") == 42
        assert self.injector.instance_of("A") == 42

    def test_override_evicts_cached_singleton(self):
        class Service: ...

        class FakeService(Service): ...

        self.injector.add_providers([Service])
        real = self.injector.get(Service)

        self.injector.add_providers([Provider(Service, use_class=FakeService)])
        fake = self.injector.get(Service)

        assert isinstance(fake, FakeService)
        assert fake is not real

    def test_undo_evicts_cached_override(self):
        class Service: ...

        self.injector.add_providers([Service])
        undo = self.injector.add_providers([Provider(Service, use_value="fake")])
        assert self.injector.get(Service) == "fake"

        undo()
        assert isinstance(self.injector.get(Service), Service)

    def test_replace_removes_previous_providers_for_incoming_tokens(self):
        self.injector.add_providers([Provider("A", use_value=1), Provider("A", use_value=2)])
        tokens = [p.provide for p in self.injector.providers]
        assert tokens == ["B", "A", "A"]
        assert self.injector.get("A") == 2

    def test_append_keeps_previous_providers(self):
        self.injector.add_providers([Provider("A", use_value=1)], replace=False)
        values = [p.use_value for p in self.injector.providers]
        assert values == [42, "b", 1]
        assert self.injector.get("A") == 1

    def test_append_evicts_cache_too(self):
        assert self.injector.get("A") == 42
        self.injector.add_providers([Provider("A", use_value=7)], replace=False)
        assert self.injector.get("A") == 7

    def test_untouched_singletons_stay_cached(self):
        class Service: ...

        self.injector.add_providers([Service])
        svc = self.injector.get(Service)
        self.injector.add_providers([Provider("A", use_value=0)])
        assert self.injector.get(Service) is svc

    def test_undo_removes_providers_for_new_tokens(self):
        before = self.injector.providers
        undo = self.injector.add_providers([Provider("C", use_value="c")])
        assert self.injector.get("C") == "c"

        undo()
        assert self.injector.providers == before
        assert self.injector.get("C") is None

    def test_undo_restores_exact_order(self):
        before = self.injector.providers
        undo = self.injector.add_providers([Provider("A", use_value=1)])
        undo()
        assert self.injector.providers == before

    def test_undo_twice_is_harmless(self):
        undo = self.injector.add_providers([Provider("A", use_value=99)])
        undo()
        undo()
        assert self.injector.get("A") == 42

    def test_undo_returns_redo(self):
        undo = self.injector.add_providers([Provider("A", use_value=99)])
        redo = undo()
        assert self.injector.get("A") == 42

        redo()
        assert self.injector.get("A") == 99

    def test_nested_undo_stack(self):
        undo_first = self.injector.add_providers([Provider("A", use_value=1)])
        undo_second = self.injector.add_providers([Provider("A", use_value=2)])
        assert self.injector.get("A") == 2

        undo_second()
        assert self.injector.get("A") == 1
        undo_first()
        assert self.injector.get("A") == 42

    def test_accepts_bare_classes_and_mappings(self):
        class Service: ...

        self.injector.add_providers([Service, {"provide": "D", "use_value": 4}])
        assert isinstance(self.injector.get(Service), Service)
        assert self.injector.get("D") == 4

    def test_version_increments_on_every_change(self):
        start = self.injector.version
        undo = self.injector.add_providers([Provider("A", use_value=1)])
        assert self.injector.version == start + 1
        undo()
        assert self.injector.version == start + 2

    def test_registration_during_resolution_is_visible_later(self):
        def make_b(deps):
            self.injector.add_providers([Provider("A", use_value="late")])
            return "b"

        self.injector.add_providers([Provider("B", use_factory=make_b)])
        assert self.injector.get("B") == "b"
        assert self.injector.get("A") == "late"

    def test_undo_after_later_registration_evicts_restored_tokens(self):
        undo_b = self.injector.add_providers([Provider("B", use_value=1)])
        self.injector.add_providers([Provider("A", use_value=99)])
        assert self.injector.get("A") == 99

        undo_b()
        assert self.injector.instance_of("A") == 42
        assert self.injector.get("A") == 42

    def test_undo_after_later_registration_drops_cached_new_token(self):
        class Service: ...

        undo_service = self.injector.add_providers([Service])
        self.injector.add_providers([Provider("C", use_value="c")])
        assert self.injector.get("C") == "c"

        undo_service()
        assert self.injector.get("C") is None
