import asyncio
import logging

import pytest

from omni_tokens.registry import KNOWN_ADAPTERS, dedupe_standards, discover_standards
from omni_tokens.standards import Dip20, Ext, ExtCommon, Icrc1, Icrc10, looks_like_dip20
from omni_tokens.standards.base import TokenAdapter
from omni_tokens.types import StandardDescriptor

from .conftest import FakeTransport


def _adapter(name, standards=(), answer=None, error=None):
    async def supported_standards(cls, config):
        if error is not None:
            raise error
        return answer if answer is not None else [StandardDescriptor(s) for s in standards]

    return type(name, (TokenAdapter,), {"supported_standards": classmethod(supported_standards)})


def _names(standards):
    return sorted(s.name for s in standards)


@pytest.mark.asyncio
async def test_discovery_is_a_deduplicated_union(make_config):
    a = _adapter("A", ["A"])
    ab = _adapter("AB", ["A", "B"])
    found = await discover_standards(make_config(), [a, ab])
    assert _names(found) == ["A", "B"]


@pytest.mark.asyncio
async def test_failing_and_garbage_probes_count_as_unsupported(make_config, caplog):
    caplog.set_level(logging.DEBUG, logger="omni_tokens.registry")
    adapters = [
        _adapter("Ok", ["ICRC-1"]),
        _adapter("Boom", error=RuntimeError("canister trapped")),
        _adapter("Garbage", answer=[42]),
        _adapter("Nameless", answer=[{"url": "https://example.org"}]),
    ]
    found = await discover_standards(make_config(), adapters)
    assert _names(found) == ["ICRC-1"]
    events = [r.getMessage() for r in caplog.records]
    assert "probe_failed" in events
    assert events.count("probe_invalid_answer") == 2
    assert "standards_discovered" in events


@pytest.mark.asyncio
async def test_all_probes_fail_yields_empty_set(make_config):
    adapters = [_adapter("X", error=TimeoutError()), _adapter("Y", error=ValueError("bad"))]
    assert await discover_standards(make_config(), adapters) == []


@pytest.mark.asyncio
async def test_probes_run_concurrently(make_config):
    ready = asyncio.Event()

    async def waits(cls, config):
        await ready.wait()
        return [StandardDescriptor("W")]

    async def releases(cls, config):
        ready.set()
        return [StandardDescriptor("R")]

    w = type("W", (TokenAdapter,), {"supported_standards": classmethod(waits)})
    r = type("R", (TokenAdapter,), {"supported_standards": classmethod(releases)})
    found = await asyncio.wait_for(discover_standards(make_config(), [w, r]), timeout=2)
    assert _names(found) == ["R", "W"]


@pytest.mark.asyncio
async def test_probe_transport_is_anonymous_with_one_retry(make_config, transport):
    transport.responses["icrc1_supported_standards"] = [{"name": "ICRC-1", "url": "https://github.com/dfinity/ICRC-1"}]
    found = await discover_standards(make_config(), [Icrc1])
    assert found == [StandardDescriptor("ICRC-1", "https://github.com/dfinity/ICRC-1")]
    call = transport.last("icrc1_supported_standards")
    assert call.anonymous is True
    assert call.max_retries == 1
    assert call.kind == "query"


@pytest.mark.asyncio
async def test_probe_retry_limit_follows_config(make_config, transport):
    transport.responses["icrc10_supported_standards"] = ["ICRC-7", "ICRC-10"]
    found = await discover_standards(make_config(probe_max_retries=0), [Icrc10])
    assert _names(found) == ["ICRC-10", "ICRC-7"]
    assert transport.last("icrc10_supported_standards").max_retries == 0


@pytest.mark.asyncio
async def test_known_adapters_against_an_icrc_ledger(make_config, transport):
    transport.responses.update(
        {
            "icrc1_supported_standards": [
                {"name": "ICRC-1", "url": "https://github.com/dfinity/ICRC-1"},
                {"name": "ICRC-2", "url": "https://github.com/dfinity/ICRC-1"},
            ],
            "icrc10_supported_standards": [{"name": "ICRC-1", "url": "duplicate"}],
        }
    )
    found = await discover_standards(make_config(), KNOWN_ADAPTERS)
    assert _names(found) == ["ICRC-1", "ICRC-2"]
    # first answer in adapter order wins on duplicates
    assert {s.name: s.url for s in found}["ICRC-1"] == "https://github.com/dfinity/ICRC-1"


def test_dedupe_keeps_first_descriptor():
    groups = [[StandardDescriptor("A", "one")], [StandardDescriptor("A", "two"), StandardDescriptor("B")]]
    assert dedupe_standards(groups) == [StandardDescriptor("A", "one"), StandardDescriptor("B")]


# ---------------- EXT ----------------


@pytest.mark.asyncio
async def test_ext_probes(make_config, transport):
    transport.responses["extensions"] = ["@ext/common", "@ext/nonfungible"]
    found = await discover_standards(make_config(), [Ext, ExtCommon])
    assert _names(found) == ["@ext/common", "@ext/nonfungible"]


@pytest.mark.asyncio
async def test_ext_nonfungible_needs_both_extensions(make_config, transport):
    transport.responses["extensions"] = ["@ext/common"]
    assert await discover_standards(make_config(), [Ext]) == []
    assert _names(await discover_standards(make_config(), [ExtCommon])) == ["@ext/common"]


# ---------------- DIP-20 heuristic ----------------


def _dip20_metadata(owner):
    return {
        "fee": 10_000,
        "decimals": 8,
        "owner": owner,
        "logo": "data:image/png;base64,AAAA",
        "name": "Wrapped ICP",
        "totalSupply": 1_000_000,
        "symbol": "WICP",
    }


@pytest.mark.asyncio
async def test_dip20_detected_by_heuristic(make_config, transport, owner):
    transport.responses.update({"getMetadata": _dip20_metadata(owner), "allowance": 0})
    assert await looks_like_dip20(make_config())
    found = await discover_standards(make_config(), [Dip20])
    assert found == [StandardDescriptor("DIP-20", "https://github.com/Psychedelic/DIP20")]
    a, b = transport.last("allowance").args
    assert a != b
    assert a.to_text() == "s7l4m-kbynv-wmpuo-li4xn-vlotx-ulyj6-afz7m-npdis-ajee4-xx5jj-tae"


@pytest.mark.asyncio
async def test_dip20_nonzero_allowance_is_not_dip20(make_config, transport, owner):
    transport.responses.update({"getMetadata": _dip20_metadata(owner), "allowance": 5})
    assert not await looks_like_dip20(make_config())


@pytest.mark.asyncio
async def test_dip20_invalid_metadata_skips_allowance_check(make_config, transport, owner):
    md = _dip20_metadata(owner)
    del md["symbol"]
    transport.responses.update({"getMetadata": md, "allowance": 0})
    assert not await looks_like_dip20(make_config())
    assert "allowance" not in transport.methods()


@pytest.mark.asyncio
async def test_dip20_unreachable_is_not_dip20(make_config):
    config = make_config(transport=FakeTransport())
    assert not await looks_like_dip20(config)
