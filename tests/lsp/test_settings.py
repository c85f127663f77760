"""Tests for per-document settings and their cache."""

import asyncio
import unittest

from fl_lsp.lsp.settings import Settings, SettingsCache


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        settings = Settings.from_dict(None)
        self.assertEqual(settings.max_number_of_problems, 1000)
        self.assertTrue(settings.enable_linting)
        self.assertIsNone(settings.executable_path)
        self.assertEqual(settings.trace_server, "off")

    def test_from_client_configuration(self):
        settings = Settings.from_dict(
            {
                "maxNumberOfProblems": 10,
                "enableLinting": False,
                "executablePath": "/usr/local/bin/cargo-fl",
                "trace": {"server": "verbose"},
            }
        )
        self.assertEqual(
            settings,
            Settings(
                max_number_of_problems=10,
                enable_linting=False,
                executable_path="/usr/local/bin/cargo-fl",
                trace_server="verbose",
            ),
        )

    def test_flat_trace_key(self):
        self.assertEqual(Settings.from_dict({"trace.server": "messages"}).trace_server, "messages")

    def test_invalid_values_use_defaults(self):
        settings = Settings.from_dict(
            {"maxNumberOfProblems": -1, "enableLinting": "yes", "executablePath": 42}
        )
        self.assertEqual(settings, Settings())
        self.assertEqual(Settings.from_dict({"maxNumberOfProblems": True}), Settings())


class FakeClient:
    """Answers workspace/configuration requests from a dict of responses."""

    def __init__(self, responses=None, fail=False):
        self.responses = responses or {}
        self.fail = fail
        self.requests = []

    async def __call__(self, uri):
        self.requests.append(uri)
        await asyncio.sleep(0)
        if self.fail:
            raise ConnectionError("client went away")
        return self.responses.get(uri)


class TestSettingsCache(unittest.TestCase):
    def test_global_settings_without_scoped_support(self):
        cache = SettingsCache()
        self.assertFalse(cache.supports_scoped)
        cache.update_global({"maxNumberOfProblems": 3})
        settings = asyncio.run(cache.get("file:///a.rs"))
        self.assertEqual(settings.max_number_of_problems, 3)
        self.assertEqual(len(cache), 0)

    def test_fetches_once_per_uri(self):
        client = FakeClient({"file:///a.rs": {"maxNumberOfProblems": 7}})
        cache = SettingsCache(client)

        async def scenario():
            first, second = await asyncio.gather(cache.get("file:///a.rs"), cache.get("file:///a.rs"))
            third = await cache.get("file:///a.rs")
            return first, second, third

        first, second, third = asyncio.run(scenario())
        self.assertEqual(first.max_number_of_problems, 7)
        self.assertEqual(first, second)
        self.assertEqual(first, third)
        self.assertEqual(client.requests, ["file:///a.rs"])
        self.assertIn("file:///a.rs", cache)

    def test_evict_removes_entry(self):
        cache = SettingsCache(FakeClient())

        async def scenario():
            await cache.get("file:///a.rs")
            cache.evict("file:///a.rs")

        asyncio.run(scenario())
        self.assertNotIn("file:///a.rs", cache)
        self.assertEqual(len(cache), 0)

    def test_evict_while_fetch_in_flight(self):
        cache = SettingsCache(FakeClient())

        async def scenario():
            pending = asyncio.ensure_future(cache.get("file:///a.rs"))
            await asyncio.sleep(0)
            cache.evict("file:///a.rs")
            settings = await pending
            return settings

        settings = asyncio.run(scenario())
        self.assertEqual(settings, Settings())
        self.assertNotIn("file:///a.rs", cache)

    def test_failed_fetch_falls_back_to_global_and_is_not_cached(self):
        client = FakeClient(fail=True)
        cache = SettingsCache(client)
        cache.update_global({"maxNumberOfProblems": 4})

        settings = asyncio.run(cache.get("file:///a.rs"))

        self.assertEqual(settings.max_number_of_problems, 4)
        self.assertNotIn("file:///a.rs", cache)

    def test_failed_fetch_prefers_last_known(self):
        client = FakeClient({"file:///a.rs": {"maxNumberOfProblems": 9}})
        cache = SettingsCache(client)

        async def scenario():
            await cache.get("file:///a.rs")
            cache.invalidate()
            client.fail = True
            return await cache.get("file:///a.rs")

        settings = asyncio.run(scenario())
        self.assertEqual(settings.max_number_of_problems, 9)

    def test_invalidate_refetches(self):
        client = FakeClient({"file:///a.rs": {"maxNumberOfProblems": 1}})
        cache = SettingsCache(client)

        async def scenario():
            await cache.get("file:///a.rs")
            cache.invalidate()
            client.responses["file:///a.rs"] = {"maxNumberOfProblems": 2}
            return await cache.get("file:///a.rs")

        settings = asyncio.run(scenario())
        self.assertEqual(settings.max_number_of_problems, 2)
        self.assertEqual(len(client.requests), 2)

    def test_enable_scoped(self):
        cache = SettingsCache()
        cache.enable_scoped(FakeClient({"file:///a.rs": {"enableLinting": False}}))
        self.assertTrue(cache.supports_scoped)
        self.assertFalse(asyncio.run(cache.get("file:///a.rs")).enable_linting)
