import pytest

from app.services.live import LiveView
from app.store.memory import MemoryDocumentStore


class Outbox:
    def __init__(self):
        self.sent = []

    async def __call__(self, rows):
        self.sent.append(rows)


@pytest.fixture
async def live_store(store: MemoryDocumentStore) -> MemoryDocumentStore:
    await store.set_document("clients/C1", {"firstName": "John", "lastName": "Doe"})
    await store.set_document("users/U1", {"firstName": "Lou", "lastName": "Lawyer", "role": "lawyer"})
    await store.set_document("cases/K1", {"caseName": "Estate of Doe", "clientId": "C1", "assignedPersonnelIds": ["U1"]})
    return store


class TestLiveView:
    async def test_sends_once_every_collection_loaded(self, live_store):
        outbox = Outbox()
        view = LiveView.for_view(live_store, "cases", outbox)
        await view.start()

        assert len(outbox.sent) == 1
        row = outbox.sent[0][0]
        assert row["id"] == "K1"
        assert row["clientName"] == "John Doe"
        assert row["assignedLawyer"] == "Lou Lawyer"
        await view.close()

    async def test_lookup_change_rejoins(self, live_store):
        outbox = Outbox()
        view = LiveView.for_view(live_store, "cases", outbox)
        await view.start()

        await live_store.update_document("clients/C1", {"name": "Johnny Doe"})
        assert outbox.sent[-1][0]["clientName"] == "Johnny Doe"
        await view.close()

    async def test_close_detaches_listeners(self, live_store):
        outbox = Outbox()
        view = LiveView.for_view(live_store, "cases", outbox)
        await view.start()
        await view.close()

        await live_store.set_document("cases/K2", {"caseName": "Another", "clientId": "C1"})
        assert len(outbox.sent) == 1
        assert live_store._listeners == {}

    async def test_dropped_socket_closes_view(self, live_store):
        class DroppedSocket:
            calls = 0

            async def __call__(self, rows):
                self.calls += 1
                if self.calls > 1:
                    raise RuntimeError("websocket closed")

        socket = DroppedSocket()
        view = LiveView.for_view(live_store, "cases", socket)
        await view.start()

        await live_store.update_document("cases/K1", {"status": "Closed"})
        assert (await live_store.get_document("cases/K1")).data["status"] == "Closed"
        assert view.closed
        assert live_store._listeners == {}

    def test_unknown_view(self, live_store):
        with pytest.raises(KeyError):
            LiveView.for_view(live_store, "secrets", Outbox())
