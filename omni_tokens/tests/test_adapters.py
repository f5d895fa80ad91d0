import pytest

from omni_tokens.account import Account, hash_account, to_account_hash
from omni_tokens.codecs import Encoding
from omni_tokens.errors import ContractRejected, InvalidInput
from omni_tokens.principal import Principal
from omni_tokens.standards import (Dip20, Ext, ExtCommon, Icrc1, Icrc2, Icrc4,
                                   Icrc7)
from omni_tokens.standards.ext import token_index_from_id, token_index_to_id
from omni_tokens.types import CallDescription

from .conftest import LEDGER, OWNER

SUB_ONE = bytes(31) + b"\x01"
OWNER_SUB_ONE = f"{OWNER}-6cc627i.1"


def bind(adapter, config, *standards):
    return adapter(config, standards or adapter.implemented_standards)


# ---------------- ICRC-1 ----------------


@pytest.mark.asyncio
async def test_icrc1_balance_of_sends_account_record(make_config, transport, owner):
    transport.responses["icrc1_balance_of"] = 1_000
    token = bind(Icrc1, make_config())
    assert await token.balance_of(OWNER_SUB_ONE) == 1_000
    call = transport.last("icrc1_balance_of")
    assert call.kind == "query"
    assert call.args == [{"owner": owner, "subaccount": [SUB_ONE]}]
    assert call.canister_id == Principal.from_text(LEDGER)


@pytest.mark.asyncio
async def test_icrc1_metadata_derived_values(make_config, transport):
    transport.responses["icrc1_metadata"] = [
        ("icrc1:symbol", {"Text": "ICP"}),
        ("icrc1:logo", {"Text": "data:image/svg+xml;base64,AAA"}),
        ("icrc1:max_memo_size", {"Nat": 64}),
    ]
    token = bind(Icrc1, make_config())
    assert await token.logo() == "data:image/svg+xml;base64,AAA"
    assert await token.max_memo_size() == 64

    transport.responses["icrc1_metadata"] = []
    assert await token.logo() is None
    assert await token.max_memo_size() == 32


@pytest.mark.asyncio
async def test_icrc1_minting_account(make_config, transport, owner):
    token = bind(Icrc1, make_config())
    transport.responses["icrc1_minting_account"] = []
    assert await token.minting_account() is None
    transport.responses["icrc1_minting_account"] = [{"owner": owner, "subaccount": [SUB_ONE]}]
    assert await token.minting_account() == OWNER_SUB_ONE


@pytest.mark.asyncio
async def test_icrc1_transfer_wire_shape_and_result(make_config, transport, owner):
    transport.responses["icrc1_transfer"] = {"Ok": 42}
    token = bind(Icrc1, make_config())
    assert await token.transfer({"to": OWNER_SUB_ONE, "amount": 5, "memo": b"hi"}) == 42
    call = transport.last("icrc1_transfer")
    assert call.kind == "update"
    assert call.args == [
        {
            "to": {"owner": owner, "subaccount": [SUB_ONE]},
            "amount": 5,
            "fee": [],
            "from_subaccount": [],
            "memo": [b"hi"],
            "created_at_time": [],
        }
    ]


@pytest.mark.asyncio
async def test_icrc1_transfer_rejected_keeps_payload(make_config, transport):
    payload = {"InsufficientFunds": {"balance": 3}}
    transport.responses["icrc1_transfer"] = {"Err": payload}
    token = bind(Icrc1, make_config())
    with pytest.raises(ContractRejected) as exc:
        await token.transfer({"to": OWNER, "amount": 5})
    assert exc.value.payload == payload
    assert exc.value.method == "icrc1_transfer"


def test_icrc1_capability_map(make_config):
    token = bind(Icrc1, make_config())
    assert set(token.operations) == set(Icrc1.OPERATIONS["ICRC-1"])
    assert bind(Icrc1, make_config(), "ICRC-2").operations == {}


def test_icrc1_decode_transfer(candid, owner):
    candid.decoded[("icrc1", "icrc1_transfer")] = [
        {
            "to": {"owner": owner, "subaccount": []},
            "amount": 9,
            "fee": [10],
            "from_subaccount": [SUB_ONE],
            "memo": [],
            "created_at_time": [],
        }
    ]
    described = Icrc1.decode_call("icrc1_transfer", b"DIDL", Encoding.CANDID, candid=candid)
    assert described == CallDescription(
        "transfer",
        (
            {
                "to": OWNER,
                "amount": 9,
                "fee": 10,
                "from_subaccount": SUB_ONE,
                "memo": None,
                "created_at_time": None,
            },
        ),
    )
    assert candid.seen == [("icrc1", "icrc1_transfer", b"DIDL")]


def test_icrc1_decode_ignores_other_encodings_and_methods(candid):
    assert Icrc1.decode_call("icrc1_name", b"", Encoding.CBOR, candid=candid) is None
    assert Icrc1.decode_call("transfer", b"", Encoding.CANDID, candid=candid) is None


def test_icrc1_decode_undecodable_bytes_raise(candid):
    with pytest.raises(ValueError):
        Icrc1.decode_call("icrc1_balance_of", b"junk", Encoding.CANDID, candid=candid)


# ---------------- ICRC-2 ----------------


@pytest.mark.asyncio
async def test_icrc2_allowance(make_config, transport, owner):
    transport.responses["icrc2_allowance"] = {"allowance": 10, "expires_at": []}
    token = bind(Icrc2, make_config())
    assert await token.allowance({"account": OWNER, "spender": OWNER_SUB_ONE}) == {
        "allowance": 10,
        "expires_at": None,
    }
    assert transport.last("icrc2_allowance").args == [
        {
            "account": {"owner": owner, "subaccount": []},
            "spender": {"owner": owner, "subaccount": [SUB_ONE]},
        }
    ]


@pytest.mark.asyncio
async def test_icrc2_approve_and_transfer_from(make_config, transport):
    transport.responses["icrc2_approve"] = {"Ok": 7}
    transport.responses["icrc2_transfer_from"] = {"Err": {"InsufficientAllowance": {"allowance": 0}}}
    token = bind(Icrc2, make_config())
    assert await token.approve({"spender": OWNER_SUB_ONE, "amount": 100, "expires_at": 99}) == 7
    sent = transport.last("icrc2_approve").args[0]
    assert sent["expires_at"] == [99]
    assert sent["expected_allowance"] == []
    with pytest.raises(ContractRejected):
        await token.transfer_from({"from": OWNER, "to": OWNER_SUB_ONE, "amount": 1})


def test_icrc2_only_enables_its_own_operations(make_config):
    token = bind(Icrc2, make_config())
    assert set(token.operations) == {"transfer_from", "approve", "allowance"}


# ---------------- ICRC-4 ----------------


@pytest.mark.asyncio
async def test_icrc4_batch_results_per_item(make_config, transport):
    transport.responses["icrc4_transfer_batch"] = [
        [{"Ok": 1}],
        [],
        [{"Err": {"BadFee": {"expected_fee": 10}}}],
    ]
    token = bind(Icrc4, make_config())
    results = await token.batch_transfer(
        [{"to": OWNER, "amount": 1}, {"to": OWNER, "amount": 2}, {"to": OWNER, "amount": 3}, {"to": OWNER, "amount": 4}]
    )
    assert results[0] == 1
    assert results[1] is None
    assert isinstance(results[2], ContractRejected)
    assert results[2].payload == {"BadFee": {"expected_fee": 10}}
    # the ledger stopped answering before the last item
    assert results[3] is None
    assert [item["amount"] for item in transport.last("icrc4_transfer_batch").args[0]] == [1, 2, 3, 4]


# ---------------- ICRC-7 ----------------


@pytest.mark.asyncio
async def test_icrc7_transfer_token_unwraps_single_item_batch(make_config, transport):
    token = bind(Icrc7, make_config())
    transport.responses["icrc7_transfer"] = [[{"Ok": 9}]]
    assert await token.transfer_token({"token_id": 3, "to": OWNER}) == 9
    assert transport.last("icrc7_transfer").args[0][0]["token_id"] == 3

    transport.responses["icrc7_transfer"] = [[{"Err": {"Unauthorized": None}}]]
    with pytest.raises(ContractRejected) as exc:
        await token.transfer_token({"token_id": 3, "to": OWNER})
    assert exc.value.payload == {"Unauthorized": None}

    transport.responses["icrc7_transfer"] = [[]]
    with pytest.raises(ContractRejected):
        await token.transfer_token({"token_id": 3, "to": OWNER})


@pytest.mark.asyncio
async def test_icrc7_owner_of_and_metadata(make_config, transport, owner):
    token = bind(Icrc7, make_config())
    transport.responses["icrc7_owner_of"] = lambda ids: [[{"owner": owner, "subaccount": []}] if i == 1 else [] for i in ids]
    assert await token.owner_of(1) == OWNER
    assert await token.owner_of(2) is None
    assert await token.batch_owner_of([2, 1]) == [None, OWNER]

    transport.responses["icrc7_token_metadata"] = [[[("icrc7:name", {"Text": "#1"})]]]
    assert await token.token_metadata(1) == [("icrc7:name", {"Text": "#1"})]


@pytest.mark.asyncio
async def test_icrc7_paging_arguments(make_config, transport, owner):
    token = bind(Icrc7, make_config())
    transport.responses["icrc7_tokens"] = [6, 7]
    transport.responses["icrc7_tokens_of"] = [6]
    assert await token.tokens(prev=5, take=2) == [6, 7]
    assert transport.last("icrc7_tokens").args == [[5], [2]]
    assert await token.tokens() == [6, 7]
    assert transport.last("icrc7_tokens").args == [[], []]
    assert await token.tokens_of(OWNER, take=1) == [6]
    assert transport.last("icrc7_tokens_of").args == [{"owner": owner, "subaccount": []}, [], [1]]


@pytest.mark.asyncio
async def test_icrc7_optional_collection_values(make_config, transport):
    token = bind(Icrc7, make_config())
    transport.responses.update({"icrc7_max_memo_size": [], "icrc7_supply_cap": [], "icrc7_logo": ["https://logo"]})
    assert await token.max_memo_size() == 32
    assert await token.supply_cap() is None
    assert await token.logo() == "https://logo"


def test_icrc7_decode_paging_call(candid, owner):
    candid.decoded[("icrc7", "icrc7_tokens_of")] = [{"owner": owner, "subaccount": []}, [5], []]
    described = Icrc7.decode_call("icrc7_tokens_of", b"DIDL", Encoding.CANDID, candid=candid)
    assert described == CallDescription("tokens_of", (OWNER, 5, None))
    assert Icrc7.decode_call("icrc7_supply_cap", b"", Encoding.CANDID) == CallDescription("supply_cap")


# ---------------- DIP-20 ----------------


@pytest.mark.asyncio
async def test_dip20_balance_ignores_subaccount(make_config, transport, owner):
    transport.responses["balanceOf"] = 12
    token = bind(Dip20, make_config())
    assert await token.balance_of(OWNER_SUB_ONE) == 12
    assert transport.last("balanceOf").args == [owner]


@pytest.mark.asyncio
async def test_dip20_transfer(make_config, transport, owner):
    token = bind(Dip20, make_config())
    transport.responses["transfer"] = {"Ok": 3}
    assert await token.transfer({"to": OWNER, "amount": 100}) == 3
    assert transport.last("transfer").args == [owner, 100]
    transport.responses["transfer"] = {"Err": {"InsufficientBalance": None}}
    with pytest.raises(ContractRejected):
        await token.transfer({"to": OWNER, "amount": 100})


@pytest.mark.asyncio
async def test_dip20_metadata_and_fee(make_config, transport, owner):
    transport.responses["getMetadata"] = {
        "fee": 10,
        "decimals": 8,
        "owner": owner,
        "logo": "",
        "name": "Wrapped ICP",
        "totalSupply": 5,
        "symbol": "WICP",
    }
    token = bind(Dip20, make_config())
    md = await token.metadata()
    assert ("dip20:owner", {"Text": OWNER}) in md
    assert ("dip20:symbol", {"Text": "WICP"}) in md
    assert await token.minting_account() == OWNER
    calls = len(transport.calls)
    assert await token.fee() == 0
    assert len(transport.calls) == calls


def test_dip20_decode_transfer(candid, owner):
    candid.decoded[("dip20", "transfer")] = [owner, 5]
    described = Dip20.decode_call("transfer", b"DIDL", Encoding.CANDID, candid=candid)
    assert described == CallDescription("transfer", ({"to": OWNER, "amount": 5},))


# ---------------- EXT ----------------


def test_ext_token_identifier():
    canister = Principal.from_text(LEDGER)
    tid = token_index_to_id(canister, 2)
    assert tid.to_bytes() == b"\x0atid" + canister.to_bytes() + b"\x00\x00\x00\x02"
    assert token_index_from_id(tid) == 2
    with pytest.raises(InvalidInput):
        token_index_to_id(canister, 1 << 32)
    with pytest.raises(InvalidInput):
        token_index_from_id(canister)


@pytest.mark.asyncio
async def test_ext_tokens_paging(make_config, transport):
    transport.responses["getTokens"] = [(3, {}), (1, {}), (2, {}), (4, {})]
    token = bind(Ext, make_config())
    assert await token.tokens() == [1, 2, 3, 4]
    assert await token.tokens(prev=1, take=2) == [2, 3]
    assert await token.tokens(take=1) == [1]
    assert await token.tokens(prev=99) == []
    assert await token.total_supply() == 4


@pytest.mark.asyncio
async def test_ext_holdings_use_account_hash(make_config, transport):
    token = bind(Ext, make_config())
    transport.responses["tokens"] = {"ok": [5, 4]}
    assert await token.tokens_of(OWNER) == [4, 5]
    assert transport.last("tokens").args == [to_account_hash(OWNER)]
    assert await token.balance_of(OWNER) == 2

    transport.responses["tokens"] = {"err": {"Other": "No tokens"}}
    assert await token.tokens_of(OWNER) == []
    assert await token.balance_of(OWNER) == 0


@pytest.mark.asyncio
async def test_ext_owner_of(make_config, transport):
    transport.responses["getRegistry"] = [(1, "aa" * 32), (2, "bb" * 32)]
    token = bind(Ext, make_config())
    assert await token.owner_of(2) == "bb" * 32
    assert await token.owner_of(3) is None


@pytest.mark.asyncio
async def test_ext_transfer_token_requires_caller(make_config, transport):
    token = bind(Ext, make_config())
    with pytest.raises(InvalidInput):
        await token.transfer_token({"token_id": 1, "to": OWNER})
    assert transport.methods() == []


@pytest.mark.asyncio
async def test_ext_transfer_token(make_config, transport, owner):
    transport.responses["transfer"] = {"ok": 1}
    token = bind(Ext, make_config(caller=OWNER))
    assert await token.transfer_token({"token_id": 2, "to": OWNER_SUB_ONE}) == 1
    (request,) = transport.last("transfer").args
    assert request["token"] == token_index_to_id(Principal.from_text(LEDGER), 2).to_text()
    assert request["from"] == {"address": hash_account(Account(owner))}
    assert request["to"] == {"address": to_account_hash(OWNER_SUB_ONE)}
    assert request["memo"] == b"\x00"
    assert request["amount"] == 1

    transport.responses["transfer"] = {"err": {"Unauthorized": "x"}}
    with pytest.raises(ContractRejected):
        await token.transfer_token({"token_id": 2, "to": OWNER})


@pytest.mark.asyncio
async def test_ext_name_from_index_page(make_config, transport):
    token = bind(Ext, make_config())
    transport.responses["http_request"] = {"status_code": 200, "body": b"Cool Cats\nEXT by Toniq Labs"}
    assert await token.name() == "Cool Cats"
    transport.responses["http_request"] = {"status_code": 404, "body": b""}
    assert await token.name() == "Unknown"
    assert await token.symbol() == "EXT"


@pytest.mark.asyncio
async def test_ext_token_metadata_points_at_asset(make_config):
    token = bind(Ext, make_config())
    tid = token_index_to_id(Principal.from_text(LEDGER), 7)
    md = await token.token_metadata(7)
    assert md[0] == ("@ext/nonfungible:image", {"Text": f"https://{LEDGER}.raw.icp0.io/?tokenid={tid}"})
    assert Ext.token_metadata_to_image(md) == f"https://{LEDGER}.raw.icp0.io/?tokenid={tid}"


def test_ext_decode_transfer(candid, owner):
    tid = token_index_to_id(Principal.from_text(LEDGER), 2).to_text()
    candid.decoded[("ext", "transfer")] = [
        {
            "token": tid,
            "to": {"principal": owner},
            "from": {"address": "aa" * 32},
            "subaccount": [],
            "memo": b"m",
            "amount": 1,
            "notify": False,
        }
    ]
    described = Ext.decode_call("transfer", b"DIDL", Encoding.CANDID, candid=candid)
    assert described == CallDescription(
        "transfer_token", ({"token_id": 2, "from_subaccount": None, "to": OWNER, "memo": b"m"},)
    )
    assert Ext.decode_call("getTokens", b"", Encoding.CANDID) == CallDescription("tokens")


@pytest.mark.asyncio
async def test_ext_common_balance(make_config, transport):
    transport.responses["balance"] = {"ok": 7}
    token = bind(ExtCommon, make_config())
    assert await token.balance_of(OWNER) == 7
    assert transport.last("balance").args == [{"token": LEDGER, "user": {"address": to_account_hash(OWNER)}}]
    assert await token.max_memo_size() == 32
    assert ExtCommon.encodings == frozenset()


@pytest.mark.asyncio
async def test_ext_common_known_name_skips_index_page(make_config, transport):
    token = bind(ExtCommon, make_config(canister_id="oeee4-qaaaa-aaaak-qaaeq-cai"))
    assert await token.name() == "Motoko Ghosts"
    assert transport.methods() == []


@pytest.mark.asyncio
async def test_ext_counts_nfts_where_ext_common_asks_the_ledger(make_config, transport):
    transport.responses["tokens"] = {"ok": [1, 4, 9]}
    transport.responses["balance"] = {"ok": 500}
    assert await bind(Ext, make_config()).balance_of(OWNER) == 3
    assert await bind(ExtCommon, make_config()).balance_of(OWNER) == 500
    assert "max_memo_size" not in bind(Ext, make_config()).operations
