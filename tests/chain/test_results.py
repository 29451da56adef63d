"""Execution result parsing and created-object lookup."""

from agora.chain.results import ExecutionResult, find_created_object
from agora.chain.transactions import NFT_OBJECT_TYPE, TASK_OBJECT_TYPE

PKG = "0x" + "a" * 64

RPC_RESPONSE = {
    "digest": "8xYz",
    "effects": {"status": {"status": "success"}},
    "objectChanges": [
        {"type": "mutated", "objectType": "0x2::coin::Coin<0x2::sui::SUI>", "objectId": "0x9"},
        {"type": "created", "objectType": f"{PKG}::task::Task", "objectId": "0xt1"},
        {"type": "created", "objectType": f"{PKG}::nft::AchievementNFT<{PKG}::nft::Meta>", "objectId": "0xn1"},
    ],
}


def test_from_rpc_success():
    result = ExecutionResult.from_rpc(RPC_RESPONSE)
    assert result.digest == "8xYz"
    assert result.succeeded
    assert len(result.object_changes) == 3


def test_from_rpc_failure_status():
    result = ExecutionResult.from_rpc(
        {"digest": "d", "effects": {"status": {"status": "failure", "error": "MoveAbort(3)"}}}
    )
    assert not result.succeeded
    assert result.error == "MoveAbort(3)"
    assert result.object_changes == []


def test_missing_status_is_not_success():
    result = ExecutionResult.from_rpc({"digest": "d", "objectChanges": RPC_RESPONSE["objectChanges"]})
    assert result.status == "unknown"
    assert not result.succeeded


def test_find_created_object_by_suffix():
    result = ExecutionResult.from_rpc(RPC_RESPONSE)
    assert find_created_object(result, TASK_OBJECT_TYPE) == "0xt1"


def test_generic_parameters_ignored():
    result = ExecutionResult.from_rpc(RPC_RESPONSE)
    assert find_created_object(result, NFT_OBJECT_TYPE) == "0xn1"


def test_only_created_changes_match():
    result = ExecutionResult.from_rpc(
        {"digest": "d", "objectChanges": [{"type": "mutated", "objectType": f"{PKG}::task::Task", "objectId": "0x1"}]}
    )
    assert find_created_object(result, TASK_OBJECT_TYPE) is None
