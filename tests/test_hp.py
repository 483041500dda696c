import asyncio
import unittest

from fwpull.errors import (
    ElementNotFoundError,
    MissingElementError,
    NavigationError,
    UrlTransformError,
)
from fwpull.locators import DEFAULT_SELECTORS
from fwpull.models import ServerRequest, VendorKind
from fwpull.vendors import ExtractContext
from fwpull.vendors.hp import (
    extract,
    first_anchor_href,
    pick_versions,
    scan_bold_versions,
    sorted_results_url,
)
from tests.fakes import FakePage, make_session

HP = DEFAULT_SELECTORS[VendorKind.HP]
HOME = HP.url("home")
RESULTS = (
    "https://support.hpe.com/hpesc/public/km/search"
    "#t=DriversandSoftware&sort=relevancy&layout=table&numberOfResults=25"
    "&f:@kmswtargetbaseenvironmentfacet=[OS%20Independent]"
)
SORTED = (
    "https://support.hpe.com/hpesc/public/km/search"
    "#t=DriversandSoftware&sort=%40hpescuniversaldate%20descending&layout=table"
    "&numberOfResults=25&f:@kmswtargetbaseenvironmentfacet=[OS%20Independent]"
)
DETAIL = "https://support.hpe.com/hpesc/public/swd/detail?swItemId=MTX_a1b2c3"

REVISION_HISTORY = """
<div id="ui-id-6">
  <b>Version 2.80 (10 Apr 2023)</b>
  <b>Fixes</b>
  <b>Version 2.78 (2 Feb 2023)</b>
  <b>Version 2.76 (1 Dec 2022)</b>
</div>
"""


class HpHelperTests(unittest.TestCase):
    def test_pick_first_two_versions(self):
        texts = ["Version 3.10 (System ROM)", "irrelevant", "Version 3.12 (System ROM)"]
        self.assertEqual(pick_versions(texts), ("3.10", "3.12"))
        self.assertEqual(pick_versions(texts + ["Version 3.99"]), ("3.10", "3.12"))

    def test_pick_versions_partial(self):
        self.assertEqual(pick_versions(["Version 1.40"]), ("1.40", None))
        self.assertEqual(pick_versions(["ROM Version 1.40", "Version none"]), (None, None))

    def test_scan_bold_versions(self):
        self.assertEqual(scan_bold_versions(REVISION_HISTORY), ("2.80", "2.78"))

    def test_sorted_results_url(self):
        self.assertEqual(sorted_results_url(RESULTS), SORTED)

    def test_sorted_results_url_rejects_other_urls(self):
        for url in [
            "https://support.hpe.com/hpesc/public/km/search",
            "https://support.hpe.com/hpesc/public/km/search#t=Documents&sort=relevancy",
        ]:
            with self.subTest(url=url):
                with self.assertRaises(UrlTransformError):
                    sorted_results_url(url)

    def test_first_anchor_href(self):
        self.assertEqual(
            first_anchor_href('<div><a href="/x?y=1">Rev</a><a href="/z">Z</a></div>'), "/x?y=1"
        )
        with self.assertRaises(MissingElementError):
            first_anchor_href("<div>nothing</div>")
        with self.assertRaises(MissingElementError):
            first_anchor_href("<div><a>no link</a></div>")


class HpExtractTests(unittest.TestCase):
    def setUp(self):
        self.page = FakePage()
        self.page.add(HP.locator("search_box").selector)
        self.page.add(HP.locator("search_button").selector)
        self.page.add(HP.locator("bios_result").selector, on_click=self._open(RESULTS))
        self.page.add(
            HP.locator("revision_link").selector,
            '<a href="/hpesc/public/swd/detail?swItemId=MTX_a1b2c3">Revision history</a>',
        )
        self.page.add(HP.locator("revision_tab").selector)
        self.page.sources[DETAIL] = REVISION_HISTORY

    def _open(self, url):
        def on_click():
            self.page.url = url

        return on_click

    def test_sorts_results_and_reads_revisions(self):
        context = ExtractContext(session=make_session(self.page))

        record = asyncio.run(extract(context, ServerRequest("HP", "ProLiant DL380 Gen10")))

        self.assertEqual((record.current, record.approved), ("2.80", "2.78"))
        self.assertIn(
            ("type", HP.locator("search_box").selector, "ProLiant DL380 Gen10"), self.page.events
        )
        self.assertEqual(self.page.visited(), [HOME, HOME, SORTED, DETAIL])
        start = self.page.events.index(("expect_navigation", "load"))
        self.assertEqual(self.page.events[start + 1], ("click", HP.locator("bios_result").selector))

    def test_fails_when_results_url_cannot_be_sorted(self):
        self.page.add(
            HP.locator("bios_result").selector,
            on_click=self._open("https://support.hpe.com/hpesc/public/km/search"),
        )
        context = ExtractContext(session=make_session(self.page))

        with self.assertRaises(UrlTransformError):
            asyncio.run(extract(context, ServerRequest("HP", "ProLiant DL380 Gen10")))
        self.assertEqual(self.page.visited(), [HOME])

    def test_times_out_without_results(self):
        del self.page.elements[HP.locator("revision_link").selector]
        context = ExtractContext(session=make_session(self.page, timeout_ms=20))

        with self.assertRaises(ElementNotFoundError):
            asyncio.run(extract(context, ServerRequest("HP", "ProLiant DL380 Gen10")))

    def test_result_click_must_open_a_page(self):
        self.page.add(HP.locator("bios_result").selector)
        context = ExtractContext(session=make_session(self.page))

        with self.assertRaises(NavigationError):
            asyncio.run(extract(context, ServerRequest("HP", "ProLiant DL380 Gen10")))
        self.assertEqual(self.page.visited(), [HOME])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
