import asyncio
import json
import logging
import unittest
from unittest import mock

import httpx
from playwright.async_api import Error as PlaywrightError

from fwpull.config import Settings
from fwpull.errors import SessionCloseError, SessionConnectError
from fwpull.models import ServerRequest
from fwpull.orchestrator import needs_browser, run, run_batch
from fwpull.session import AutomationSession
from fwpull.vendors import ExtractContext
from tests.fakes import FakeCloser, FakePage, TempDirTestCase, make_session

RELEASE_HISTORY = """
<table>
  <tr><td><a id="z"></a><strong>Sun System Firmware 9.1.5.a</strong></td></tr>
  <tr><td><p>Sun System Firmware 9.1.6</p></td></tr>
</table>
"""

BATCH = [
    ServerRequest("bogus", "x"),
    ServerRequest("Dell", "y"),
    ServerRequest("Oracle", "z"),
]


def _release_history(request):
    return httpx.Response(200, text=RELEASE_HISTORY)


def _errors(logs):
    return [r for r in logs.records if r.levelno >= logging.ERROR]


class RunBatchTests(TempDirTestCase):
    def setUp(self):
        super().setUp()
        self.page = FakePage()

    def test_batch_survives_failures(self):
        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(_release_history)) as http:
                context = ExtractContext(http=http, session=make_session(self.page, timeout_ms=20))
                return await run_batch(BATCH, context)

        with self.assertLogs("fwpull", level="INFO") as logs:
            records = asyncio.run(go())

        self.assertEqual(
            [r.to_json() for r in records],
            [{"Vendor": "Oracle", "Model": "z", "Current": "9.1.5.a", "Approved": "9.1.6"}],
        )
        errors = _errors(logs)
        self.assertEqual(len(errors), 2)
        self.assertIn("bogus", errors[0].getMessage())
        self.assertIn("Dell", errors[1].getMessage())
        # the Dell page was visited before it timed out
        self.assertEqual(len(self.page.visited()), 1)

    def test_batch_keeps_input_order(self):
        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(_release_history)) as http:
                requests = [ServerRequest("Oracle", "z"), ServerRequest("ORACLE", "missing")]
                return await run_batch(requests, ExtractContext(http=http))

        records = asyncio.run(go())
        self.assertEqual(
            [(r.vendor, r.model, r.current) for r in records],
            [("Oracle", "z", "9.1.5.a"), ("ORACLE", "missing", None)],
        )

    def test_batch_writes_failure_ledger(self):
        ledger = self.tmp_path / "logs" / "errors.json"
        ledger.parent.mkdir()
        ledger.write_text("not json", encoding="utf-8")

        context = ExtractContext(session=make_session(self.page, timeout_ms=10))
        requests = [ServerRequest("bogus", "x"), ServerRequest("hp", "DL380")]
        with self.assertLogs("fwpull", level="ERROR"):
            records = asyncio.run(run_batch(requests, context, errors_json=ledger))

        self.assertEqual(records, [])
        entries = json.loads(ledger.read_text(encoding="utf-8"))
        self.assertEqual(
            [(e["vendor"], e["status"]) for e in entries],
            [("bogus", "UnknownVendor"), ("hp", "ElementNotFoundError")],
        )

    def test_batch_survives_unexpected_errors(self):
        async def broken_goto(url, wait_until="load"):
            raise RuntimeError("boom")

        self.page.goto = broken_goto
        context = ExtractContext(session=make_session(self.page))

        with self.assertLogs("fwpull", level="ERROR") as logs:
            records = asyncio.run(run_batch([ServerRequest("Dell", "y")], context))

        self.assertEqual(records, [])
        self.assertEqual(len(_errors(logs)), 1)

    def test_unwritable_ledger_does_not_stop_the_batch(self):
        ledger = self.tmp_path / "ledger_dir"
        ledger.mkdir()

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(_release_history)) as http:
                requests = [ServerRequest("bogus", "x"), ServerRequest("Oracle", "z")]
                return await run_batch(requests, ExtractContext(http=http), errors_json=ledger)

        with self.assertLogs("fwpull", level="WARNING") as logs:
            records = asyncio.run(go())

        self.assertEqual([r.model for r in records], ["z"])
        self.assertTrue(
            any("failure ledger" in r.getMessage() for r in logs.records if r.levelno == logging.WARNING)
        )

    def test_needs_browser(self):
        self.assertTrue(needs_browser(BATCH))
        self.assertFalse(needs_browser([ServerRequest("Oracle", "z"), ServerRequest("bogus", "x")]))


class RunTests(TempDirTestCase):
    def setUp(self):
        super().setUp()
        self.page = FakePage()
        self.starts = []
        self.closers = {"context": FakeCloser(), "browser": FakeCloser(), "playwright": FakeCloser()}

        async def fake_start(cls, settings, capabilities):
            self.starts.append(capabilities)
            return make_session(self.page, timeout_ms=10, **self.closers)

        patcher = mock.patch.object(AutomationSession, "start", classmethod(fake_start))
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_closes_session_once_after_failures(self):
        requests = [ServerRequest("Dell", "y"), ServerRequest("HP", "DL380")]

        with self.assertLogs("fwpull", level="ERROR"):
            records = asyncio.run(run(requests, Settings(), debug=True))

        self.assertEqual(records, [])
        self.assertEqual(len(self.starts), 1)
        self.assertFalse(self.starts[0].headless)
        self.assertEqual([c.calls for c in self.closers.values()], [1, 1, 1])

    def test_without_browser_vendors_never_starts_one(self):
        with self.assertLogs("fwpull", level="ERROR"):
            records = asyncio.run(run([ServerRequest("bogus", "x")], Settings()))

        self.assertEqual(records, [])
        self.assertEqual(self.starts, [])

    def test_browser_start_failure_only_fails_browser_items(self):
        """Oracle requests still run when no browser session can be opened."""

        async def refuse(cls, settings, capabilities):
            raise SessionConnectError("unreachable")

        real_client = httpx.AsyncClient
        transport = httpx.MockTransport(_release_history)
        requests = [ServerRequest("Dell", "y"), ServerRequest("Oracle", "z"), ServerRequest("HP", "DL380")]

        with mock.patch.object(AutomationSession, "start", classmethod(refuse)), mock.patch.object(
            httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs)
        ):
            with self.assertLogs("fwpull", level="ERROR") as logs:
                records = asyncio.run(run(requests, Settings()))

        self.assertEqual([r.model for r in records], ["z"])
        messages = [r.getMessage() for r in _errors(logs)]
        self.assertIn("unreachable", messages[0])
        self.assertEqual(len(messages), 3)
        self.assertIn("y", messages[1])
        self.assertIn("DL380", messages[2])

    def test_surfaces_close_failure_with_records(self):
        """Records collected before a failed close ride along on the error."""
        self.closers["context"] = FakeCloser(PlaywrightError("gone"))
        real_client = httpx.AsyncClient
        transport = httpx.MockTransport(_release_history)

        with mock.patch.object(
            httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs)
        ):
            with self.assertLogs("fwpull", level="ERROR"):
                with self.assertRaises(SessionCloseError) as ctx:
                    asyncio.run(
                        run([ServerRequest("Dell", "y"), ServerRequest("Oracle", "z")], Settings())
                    )

        self.assertEqual(
            [(r.vendor, r.current) for r in ctx.exception.records], [("Oracle", "9.1.5.a")]
        )

    def test_uses_selector_overrides(self):
        overrides = self.tmp_path / "selectors.json"
        overrides.write_text(
            json.dumps({"version": "test", "dell": {"urls": {"drivers": "https://dell.test/{slug}"}}}),
            encoding="utf-8",
        )

        with self.assertLogs("fwpull", level="ERROR"):
            asyncio.run(
                run([ServerRequest("Dell", "PowerEdge R630")], Settings(selectors_path=overrides))
            )

        self.assertEqual(self.page.visited(), ["https://dell.test/poweredge-r630"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
