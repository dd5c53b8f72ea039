"""Tests for the documents RPC handlers and the JSON-RPC dispatcher."""

from __future__ import annotations

import importlib
from typing import Any

import pytest

from kodo.rpc_handlers import RpcError, dispatch
from kodo.rpc_handlers.documents import (
    handle_documents_edit,
    handle_documents_html,
    handle_documents_markdown,
    handle_documents_normalize,
    handle_documents_structure,
)

THREE_BLOCKS = "# Intro\n\nFirst paragraph.\n\n## Details"


@pytest.fixture
def stored_content() -> dict[str, Any]:
    """A normalized three-block document as a caller would store it."""
    return handle_documents_normalize(content=THREE_BLOCKS)["content"]


class TestConversionHandlers:
    """Test normalize and export handlers."""

    def test_normalize(self) -> None:
        result = handle_documents_normalize(content=[{"type": "list", "items": ["A", "B"]}])

        content = result["content"]
        assert content["type"] == "doc"
        assert content["content"][0]["type"] == "bulletList"
        assert content["content"][0]["attrs"]["blockId"].startswith("block-")

    def test_normalize_without_content(self) -> None:
        assert handle_documents_normalize() == {"content": {"type": "doc", "content": []}}

    def test_markdown(self, stored_content: dict[str, Any]) -> None:
        result = handle_documents_markdown(content=stored_content)

        assert result == {"markdown": "# Intro\n\nFirst paragraph.\n\n## Details"}

    def test_markdown_requires_content(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            handle_documents_markdown(content=None)

        assert exc_info.value.code == -32602

    def test_html_fragment(self, stored_content: dict[str, Any]) -> None:
        html = handle_documents_html(content=stored_content)["html"]

        assert "<h1>Intro</h1>" in html
        assert "<!DOCTYPE html>" not in html

    def test_html_page_with_title(self, stored_content: dict[str, Any]) -> None:
        html = handle_documents_html(content=stored_content, title="Report")["html"]

        assert html.startswith("<!DOCTYPE html>")
        assert "<title>Report</title>" in html

    def test_structure(self) -> None:
        content = [
            {"type": "heading", "level": 1, "text": "Plan"},
            {"type": "columns", "columns": ["a", "b"]},
        ]

        result = handle_documents_structure(content=content)

        assert result["total_blocks"] == 2
        assert result["blocks"][0]["attrs"] == {"level": 1}
        assert result["blocks"][1]["type"] == "columns"
        assert result["has_complex_blocks"] is True
        assert result["complex_block_types"] == ["columns"]


class TestEditHandler:
    """Test the edit handler end to end."""

    def test_append(self, stored_content: dict[str, Any]) -> None:
        result = handle_documents_edit(
            document_id="doc-1",
            operations=[{"action": "append", "content": [{"type": "heading", "level": 2, "text": "Done"}]}],
            content=stored_content,
        )

        assert result["operations_applied"] == 1
        assert "warnings" not in result
        assert result["structure_before"]["total_blocks"] == 3
        assert result["structure_after"]["total_blocks"] == 4
        assert result["structure_after"]["blocks"][3]["preview"] == "Done"
        assert len(result["content"]["content"]) == 4

    def test_unresolved_target(self, stored_content: dict[str, Any]) -> None:
        result = handle_documents_edit(
            document_id="doc-1",
            operations=[{"action": "replace", "target": "Nonexistent", "content": "x"}],
            content=stored_content,
        )

        assert result["operations_applied"] == 0
        assert len(result["warnings"]) == 1
        assert "Nonexistent" in result["warnings"][0]
        assert result["content"] == stored_content
        assert result["structure_after"] == result["structure_before"]

    def test_remove_all(self, stored_content: dict[str, Any]) -> None:
        result = handle_documents_edit(
            document_id="doc-1",
            operations=[{"action": "remove", "target": 0, "end_target": 2}],
            content=stored_content,
        )

        blocks = result["content"]["content"]
        assert len(blocks) == 1
        assert blocks[0]["type"] == "paragraph"

    def test_block_ids_survive_edit(self, stored_content: dict[str, Any]) -> None:
        first_id = stored_content["content"][0]["attrs"]["blockId"]

        result = handle_documents_edit(
            document_id="doc-1",
            operations=[{"action": "insert_after", "block_id": first_id, "content": "Between"}],
            content=stored_content,
        )

        blocks = result["structure_after"]["blocks"]
        assert blocks[0]["block_id"] == first_id
        assert blocks[1]["preview"] == "Between"

    def test_unknown_action_rejected(self, stored_content: dict[str, Any]) -> None:
        with pytest.raises(RpcError) as exc_info:
            handle_documents_edit(
                document_id="doc-1",
                operations=[{"action": "move", "target": 0}],
                content=stored_content,
            )

        assert exc_info.value.code == -32602
        assert exc_info.value.data["field"] == "operations.0.action"

    def test_missing_operations(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            handle_documents_edit(document_id="doc-1", operations=None)

        assert exc_info.value.data["missing"] == ["operations"]


class TestDispatch:
    """Test JSON-RPC request routing."""

    def test_result_envelope(self) -> None:
        response = dispatch(
            {"jsonrpc": "2.0", "id": 7, "method": "documents/markdown", "params": {"content": "# Hi"}}
        )

        assert response == {"jsonrpc": "2.0", "id": 7, "result": {"markdown": "# Hi"}}

    def test_method_not_found(self) -> None:
        response = dispatch({"id": 1, "method": "documents/delete"})

        assert response["error"]["code"] == -32601

    def test_invalid_request(self) -> None:
        assert dispatch([1, 2])["error"]["code"] == -32600
        assert dispatch({"id": 1})["error"]["code"] == -32600
        assert dispatch({"id": 1, "method": "documents/normalize", "params": [1]})["error"]["code"] == -32600

    def test_handler_error_becomes_error_envelope(self) -> None:
        response = dispatch(
            {
                "id": "a",
                "method": "documents/edit",
                "params": {"document_id": "d", "operations": [{"action": "move"}]},
            }
        )

        assert response["id"] == "a"
        assert response["error"]["code"] == -32602
        assert response["error"]["data"]["field"] == "operations.0.action"

    def test_unknown_params(self) -> None:
        response = dispatch(
            {"id": 2, "method": "documents/normalize", "params": {"content": "x", "bogus": 1}}
        )

        assert response["error"]["code"] == -32602

    def test_unwrapped_failure_is_internal_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        dispatch_module = importlib.import_module("kodo.rpc_handlers.dispatch")

        def broken(**params: Any) -> dict[str, Any]:
            raise RuntimeError("storage offline")

        monkeypatch.setitem(dispatch_module._METHODS, "documents/markdown", broken)

        response = dispatch({"id": 3, "method": "documents/markdown", "params": {"content": "x"}})

        assert response["error"] == {
            "code": -32603,
            "message": "Internal error in documents/markdown",
            "data": {"error_type": "RuntimeError"},
        }

    def test_registry_covers_handlers(self) -> None:
        dispatch_module = importlib.import_module("kodo.rpc_handlers.dispatch")

        assert sorted(dispatch_module._METHODS) == [
            "documents/edit",
            "documents/html",
            "documents/markdown",
            "documents/normalize",
            "documents/structure",
        ]
