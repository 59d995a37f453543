"""Property-based tests for the connection registry and broker.

Random sequences of add/remove/list/call operations are replayed against a
registry backed by fake clients, and the registry is checked against a
simple model after each step.
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tests.mocks import FakeClientFactory
from toolrelay_core.errors import RelayError
from toolrelay_core.mcp import ConnectionParams, ConnectionRegistry, ToolBroker, is_valid_url
from toolrelay_core.types import ConnectionType

# =============================================================================
# Strategies
# =============================================================================

connection_names = st.text(
    alphabet=st.characters(whitelist_categories=("L", "N"), whitelist_characters="-_"),
    min_size=1,
    max_size=20,
)

# ("add", name, fails) | ("remove", index) | ("call", index)
operations = st.lists(
    st.one_of(
        st.tuples(st.just("add"), connection_names, st.booleans()),
        st.tuples(st.just("remove"), st.integers(min_value=0, max_value=10)),
        st.tuples(st.just("call"), st.integers(min_value=0, max_value=10)),
    ),
    max_size=25,
)

json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=10),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=5), children, max_size=4),
    max_leaves=10,
)


class _Factory(FakeClientFactory):
    """Fails initialization for connections whose name is in fail_names."""

    def __init__(self):
        super().__init__(tools=[{"name": "echo"}])
        self.fail_names: set[str] = set()

    def __call__(self, connection):
        client = super().__call__(connection)
        if connection.name in self.fail_names:
            client.init_error = ConnectionError("refused")
        return client


async def _replay(ops) -> None:
    factory = _Factory()
    registry = ConnectionRegistry(factory)
    broker = ToolBroker(registry)
    known_ids: list[str] = []  # every id ever handed out, removed or not
    live: set[str] = set()

    for op in ops:
        if op[0] == "add":
            _, name, fails = op
            if fails:
                factory.fail_names.add(name)
            else:
                factory.fail_names.discard(name)
            params = ConnectionParams(name=name, type=ConnectionType.HTTP, url="https://example.com/mcp")
            try:
                connection = await registry.add_connection(params)
            except RelayError as e:
                assert fails
                assert e.code == "CONNECTION_INIT_FAILED"
                assert registry.get_connection(e.connection_id) is None
            else:
                assert not fails
                assert connection.id not in known_ids
                known_ids.append(connection.id)
                live.add(connection.id)
        elif op[0] == "remove":
            if not known_ids:
                continue
            connection_id = known_ids[op[1] % len(known_ids)]
            removed = await registry.remove_connection(connection_id)
            assert removed == (connection_id in live)
            live.discard(connection_id)
        else:
            if not known_ids:
                continue
            connection_id = known_ids[op[1] % len(known_ids)]
            try:
                await broker.list_tools(connection_id)
            except RelayError as e:
                assert connection_id not in live
                assert e.code == "CONNECTION_NOT_ACTIVE"
            else:
                assert connection_id in live

        # Both maps always agree with the model
        assert {c.id for c in registry.list_connections()} == live
        assert set(registry._clients) == live


@pytest.mark.property
class TestRegistryModel:
    """Registry state matches a set-of-live-ids model."""

    @given(operations)
    @settings(max_examples=75, deadline=None)
    def test_random_operation_sequences(self, ops):
        asyncio.run(_replay(ops))

    @given(st.lists(connection_names, min_size=1, max_size=15))
    @settings(max_examples=30, deadline=None)
    def test_concurrent_adds_never_share_ids(self, names):
        async def run():
            registry = ConnectionRegistry(FakeClientFactory(init_delay=0.001))
            connections = await asyncio.gather(
                *(
                    registry.add_connection(
                        ConnectionParams(name=name, type=ConnectionType.HTTP, url="https://example.com")
                    )
                    for name in names
                )
            )
            ids = [c.id for c in connections]
            assert len(set(ids)) == len(names)
            assert sorted(c.id for c in registry.list_connections()) == sorted(ids)

        asyncio.run(run())


@pytest.mark.property
class TestBrokerPassThrough:
    """Broker forwards params and results untouched."""

    @given(json_values, json_values)
    @settings(max_examples=50, deadline=None)
    def test_params_and_result_unmodified(self, params, result):
        async def run():
            factory = FakeClientFactory(call_result=result)
            registry = ConnectionRegistry(factory)
            broker = ToolBroker(registry)
            connection = await registry.add_connection(
                ConnectionParams(name="echo", type=ConnectionType.HTTP, url="https://example.com")
            )

            returned = await broker.call_tool(connection.id, "echo", params)

            assert returned is result
            assert factory.client_for(connection.id).calls == [("echo", params)]

        asyncio.run(run())


@pytest.mark.property
class TestURLValidation:
    """is_valid_url on generated input."""

    @given(
        st.sampled_from(["http", "https"]),
        st.from_regex(r"^[a-z][a-z0-9]{0,20}(-[a-z0-9]{1,5})?(\.[a-z]{2,6}){0,2}$", fullmatch=True),
        st.integers(min_value=1, max_value=65535),
    )
    @settings(max_examples=50)
    def test_http_urls_accepted(self, scheme, host, port):
        assert is_valid_url(f"{scheme}://{host}:{port}/mcp")

    @given(st.text(alphabet=st.characters(blacklist_characters=":"), max_size=30))
    @settings(max_examples=50)
    def test_strings_without_scheme_rejected(self, value):
        assert not is_valid_url(value)
