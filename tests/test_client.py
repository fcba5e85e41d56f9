import pytest
from bson import ObjectId

from client import AdminDetailsProvider, PortfolioClient
from conftest import seed_works
from errors import NotFound, UpstreamError
from gallery import AccumulatingFeed, WindowedPager
from schemas import AdminSettings, ContactMessage


@pytest.fixture
def api(client):
    return PortfolioClient("http://testserver", session=client)


def test_list_works_over_http(api, db):
    seed_works(db, 7)
    page = api.list_works(2, 5)
    assert len(page.items) == 2
    assert page.total_pages == 2
    assert page.total == 7


def test_feed_over_http(api, db):
    seed_works(db, 7)
    feed = AccumulatingFeed(api.list_works, limit=5)
    feed.start()
    feed.reached_end()
    assert len(feed.items) == 7
    assert not feed.has_more


def test_pager_over_http(api, db, admin_headers):
    seed_works(db, 6)
    pager = WindowedPager(api.list_works, limit=5)
    pager.load(1)
    pager.next()
    token = admin_headers["Authorization"].split(" ", 1)[1]
    assert api.delete_work(pager.items[0].id, token=token) is True
    pager.refresh()
    assert pager.page == 1
    assert pager.total == 5


def test_get_missing_work_raises_not_found(api):
    with pytest.raises(NotFound) as exc:
        api.get_work(str(ObjectId()))
    assert exc.value.message == "Work not found"


def test_submit_contact(api, sender):
    api.submit_contact(ContactMessage(name="Ada", email="ada@example.com", message="Hello from the client"))
    assert len(sender.sent) == 1


class StubClient:
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def get_admin_details(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class TestAdminDetailsProvider:
    def test_loads_once(self):
        stub = StubClient([AdminSettings(email="me@site.dev", phone="555")])
        provider = AdminDetailsProvider(stub)
        assert provider.loading is True
        assert provider.load().email == "me@site.dev"
        assert provider.load().email == "me@site.dev"
        assert stub.calls == 1
        assert provider.loading is False

    def test_refetch_replaces_details(self):
        stub = StubClient([AdminSettings(email="a@site.dev", phone="1"), AdminSettings(email="b@site.dev", phone="2")])
        provider = AdminDetailsProvider(stub)
        provider.load()
        assert provider.refetch().email == "b@site.dev"

    def test_failed_refetch_keeps_previous(self):
        stub = StubClient([AdminSettings(email="a@site.dev", phone="1"), UpstreamError("boom")])
        provider = AdminDetailsProvider(stub)
        provider.load()
        assert provider.refetch().email == "a@site.dev"
        assert isinstance(provider.error, UpstreamError)
        assert provider.loading is False

    def test_against_api_defaults(self, api):
        provider = AdminDetailsProvider(api)
        details = provider.load()
        assert details.email == ""
        assert details.banner_image is None
