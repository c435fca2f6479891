from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

logger = logging.getLogger("graph-snapshot-provider")

RECOMMEND_INCREMENTAL_BELOW = 0.2


class GraphSnapshotProvider(Protocol):
    """Graph/query layer boundary. Every method returns the raw JSON payload."""

    async def get_all_entities(self, limit: int | None = None) -> dict[str, Any]: ...

    async def get_subgraph(self, node_ids: list[str]) -> dict[str, Any]: ...

    async def get_entities_modified_since(self, since: datetime) -> dict[str, Any]: ...

    async def get_edges_created_since(self, since: datetime) -> dict[str, Any]: ...

    async def get_graph_change_summary(self, since: datetime) -> dict[str, Any]: ...


def parse_iso_time(value: str | datetime) -> datetime:
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class InMemoryGraphProvider:
    """Serves a fixed node/edge list with the same payload shapes as the query layer."""

    def __init__(self, nodes: list[dict[str, Any]] | None = None, edges: list[dict[str, Any]] | None = None) -> None:
        self._nodes: list[dict[str, Any]] = []
        self._edges: list[dict[str, Any]] = []
        self.set_graph(nodes or [], edges or [])

    def set_graph(self, nodes: list[dict[str, Any]], edges: list[dict[str, Any]]) -> None:
        self._nodes = [dict(node) for node in nodes]
        self._edges = [dict(edge) for edge in edges]

    async def get_all_entities(self, limit: int | None = None) -> dict[str, Any]:
        nodes = self._nodes if limit is None else self._nodes[:limit]
        edges = self._edges if limit is None else self._edges[: limit * 2]
        return {"nodes": [dict(n) for n in nodes], "edges": [dict(e) for e in edges]}

    async def get_subgraph(self, node_ids: list[str]) -> dict[str, Any]:
        wanted = set(node_ids)
        entities = [dict(node) for node in self._nodes if node["id"] in wanted]
        names = {node["id"]: node.get("name") or node["id"] for node in entities}
        relationships = [
            {
                "from": names[edge["source"]],
                "to": names[edge["target"]],
                "type": edge.get("type", "RELATED_TO"),
            }
            for edge in self._edges
            if edge["source"] in names and edge["target"] in names
        ]
        return {"entities": entities, "relationships": relationships}

    @staticmethod
    def _since(record: dict[str, Any], key: str, since: datetime) -> bool:
        value = record.get(key)
        return value is not None and parse_iso_time(value) >= since

    async def get_entities_modified_since(self, since: datetime) -> dict[str, Any]:
        since = parse_iso_time(since)
        touched = [
            node for node in self._nodes
            if self._since(node, "createdAt", since) or self._since(node, "updatedAt", since)
        ]
        new_entities = [n for n in touched if not n.get("updatedAt") or n.get("createdAt") == n.get("updatedAt")]
        modified = [n for n in touched if n.get("updatedAt") and n.get("createdAt") != n.get("updatedAt")]
        return {"newEntities": new_entities, "modifiedEntities": modified, "total": len(touched)}

    async def get_edges_created_since(self, since: datetime) -> dict[str, Any]:
        since = parse_iso_time(since)
        new_edges = [edge for edge in self._edges if self._since(edge, "createdAt", since)]
        return {"newEdges": new_edges, "total": len(new_edges)}

    async def get_graph_change_summary(self, since: datetime) -> dict[str, Any]:
        entity_changes = await self.get_entities_modified_since(since)
        edge_changes = await self.get_edges_created_since(since)
        total_changes = entity_changes["total"] + edge_changes["total"]
        has_changes = total_changes > 0
        size = len(self._nodes) + len(self._edges)
        change_ratio = total_changes / size if self._nodes else 1.0
        return {
            "hasChanges": has_changes,
            "newEntityCount": len(entity_changes["newEntities"]),
            "modifiedEntityCount": len(entity_changes["modifiedEntities"]),
            "newEdgeCount": edge_changes["total"],
            "totalChanges": total_changes,
            "changeRatio": change_ratio,
            "recommendIncremental": has_changes and change_ratio < RECOMMEND_INCREMENTAL_BELOW,
        }


class HttpGraphProvider:
    """Fetches snapshots from the graph/query layer's REST surface.

    HTTP and transport errors are logged and re-raised unchanged; the
    analytics core cannot do anything useful without the data.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
        )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        async with self._client() as client:
            try:
                response = await client.get(path, params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPError as exc:
                logger.error("query layer GET failed path=%s error=%s", path, exc)
                raise

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with self._client() as client:
            try:
                response = await client.post(path, json=payload)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPError as exc:
                logger.error("query layer POST failed path=%s error=%s", path, exc)
                raise

    async def get_all_entities(self, limit: int | None = None) -> dict[str, Any]:
        params = {"limit": limit} if limit is not None else None
        return await self._get("/graph/entities", params)

    async def get_subgraph(self, node_ids: list[str]) -> dict[str, Any]:
        return await self._post("/graph/subgraph", {"ids": list(node_ids)})

    async def get_entities_modified_since(self, since: datetime) -> dict[str, Any]:
        return await self._get("/graph/entities/modified", {"since": parse_iso_time(since).isoformat()})

    async def get_edges_created_since(self, since: datetime) -> dict[str, Any]:
        return await self._get("/graph/edges/created", {"since": parse_iso_time(since).isoformat()})

    async def get_graph_change_summary(self, since: datetime) -> dict[str, Any]:
        return await self._get("/graph/changes/summary", {"since": parse_iso_time(since).isoformat()})
