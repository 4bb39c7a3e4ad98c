"""Notion client for the keyword database (read, create and update keyword rows)."""

import httpx
from loguru import logger

from constellation.models.schemas import (
    KeywordCreate,
    KeywordUpdate,
    StoredKeyword,
)

NOTION_PAGE_SIZE = 100

VALID_ORIENTATIONS = {"exploratory", "critical", "problem_solving", "constructive"}
VALID_ARTIFACT_ROLES = {
    "probe",
    "critique_device",
    "generative_construct",
    "solution_system",
    "epistemic_mediator",
}
VALID_PIPELINE_ROLES = {"rq_trigger", "method_bias", "contribution_frame", "tone_modifier"}


class Prop:
    """Column names in the Notion keyword database."""
    TERM = "Term"
    ORIENTATION = "Orientation"
    ARTIFACT_ROLE = "Artifact Role"
    PIPELINE_ROLE = "Pipeline Role"
    WEIGHT = "Weight"
    ACTIVE = "Active"
    NOTES = "Notes"
    SOURCE = "Source"
    UPDATED_BY = "Updated By"


class KeywordStoreError(Exception):
    """The keyword store could not be read or written."""


def _plain_text(prop: dict | None) -> str:
    """Join the plain text of a title or rich_text property."""
    if not isinstance(prop, dict):
        return ""
    kind = prop.get("type")
    if kind in ("title", "rich_text"):
        return "".join(part.get("plain_text", "") for part in prop.get(kind) or [])
    return ""


def _select_slug(prop: dict | None) -> str:
    """Select option name normalized to enum spelling ("Problem Solving" -> "problem_solving")."""
    if isinstance(prop, dict) and prop.get("type") == "select" and prop.get("select"):
        return prop["select"].get("name", "").lower().replace(" ", "_")
    return ""


def _number(prop: dict | None, default: float = 1.0) -> float:
    if isinstance(prop, dict) and prop.get("type") == "number" and prop.get("number") is not None:
        return float(prop["number"])
    return default


def _checkbox(prop: dict | None, default: bool = True) -> bool:
    if isinstance(prop, dict) and prop.get("type") == "checkbox":
        value = prop.get("checkbox")
        return default if value is None else bool(value)
    return default


def _rich_text(content: str) -> dict:
    return {"rich_text": [{"text": {"content": content}}]}


def parse_keyword_page(page: dict) -> StoredKeyword | None:
    """
    Convert a Notion page into a StoredKeyword.

    Returns None for rows without a term or with an orientation/artifact role
    outside the known enums; those rows are not usable by the graph engine.
    """
    props = page.get("properties")
    if not isinstance(props, dict):
        return None

    term = _plain_text(props.get(Prop.TERM))
    if not term:
        return None

    orientation = _select_slug(props.get(Prop.ORIENTATION))
    artifact_role = _select_slug(props.get(Prop.ARTIFACT_ROLE))
    pipeline_role = _select_slug(props.get(Prop.PIPELINE_ROLE))
    if orientation not in VALID_ORIENTATIONS or artifact_role not in VALID_ARTIFACT_ROLES:
        return None

    return StoredKeyword(
        id=page["id"],
        term=term,
        orientation=orientation,
        artifact_role=artifact_role,
        pipeline_role=pipeline_role if pipeline_role in VALID_PIPELINE_ROLES else None,
        weight=_number(props.get(Prop.WEIGHT)),
        active=_checkbox(props.get(Prop.ACTIVE)),
        notes=_plain_text(props.get(Prop.NOTES)) or None,
        source=_plain_text(props.get(Prop.SOURCE)) or None,
        updated_by=_plain_text(props.get(Prop.UPDATED_BY)) or None,
    )


def build_update_properties(update: KeywordUpdate) -> dict:
    """Notion property payload containing only the fields set on ``update``."""
    properties: dict = {}
    if update.active is not None:
        properties[Prop.ACTIVE] = {"checkbox": update.active}
    if update.weight is not None:
        properties[Prop.WEIGHT] = {"number": update.weight}
    if update.orientation is not None:
        properties[Prop.ORIENTATION] = {"select": {"name": update.orientation}}
    if update.artifact_role is not None:
        properties[Prop.ARTIFACT_ROLE] = {"select": {"name": update.artifact_role}}
    if update.pipeline_role is not None:
        properties[Prop.PIPELINE_ROLE] = {"select": {"name": update.pipeline_role}}
    if update.notes is not None:
        properties[Prop.NOTES] = _rich_text(update.notes)
    return properties


class NotionKeywordStore:
    """Async client for the Notion keyword database.

    Reads the full keyword snapshot the graph engine builds from, writes
    suggested keywords (inactive until a curator switches them on) and
    patches individual rows.
    """

    BASE_URL = "https://api.notion.com/v1"

    def __init__(
        self,
        api_key: str,
        database_id: str,
        notion_version: str = "2022-06-28",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.database_id = database_id
        self._http_client = http_client or httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Notion-Version": notion_version,
                "Content-Type": "application/json",
            },
        )

    async def _request(self, method: str, url: str, json: dict) -> dict:
        try:
            response = await self._http_client.request(method, url, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Notion API error on {method} {url}: {e.response.status_code}")
            raise KeywordStoreError(
                f"Notion API returned {e.response.status_code}"
            ) from e
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            logger.warning(f"Notion API unreachable on {method} {url}: {e}")
            raise KeywordStoreError(f"Notion API unreachable: {type(e).__name__}") from e

    async def fetch_keywords(self) -> list[StoredKeyword]:
        """Fetch every usable keyword row, following pagination cursors."""
        keywords: list[StoredKeyword] = []
        skipped = 0
        cursor: str | None = None

        while True:
            body: dict = {"page_size": NOTION_PAGE_SIZE}
            if cursor:
                body["start_cursor"] = cursor
            data = await self._request("POST", f"/databases/{self.database_id}/query", body)

            for page in data.get("results", []):
                keyword = parse_keyword_page(page)
                if keyword is None:
                    skipped += 1
                    continue
                keywords.append(keyword)

            if not data.get("has_more"):
                break
            cursor = data.get("next_cursor")
            if not cursor:
                break

        if skipped:
            logger.debug(f"Skipped {skipped} unusable keyword rows")
        logger.info(f"Fetched {len(keywords)} keywords from Notion")
        return keywords

    async def create_keywords(self, keywords: list[KeywordCreate]) -> list[str]:
        """Create one inactive page per keyword and return the new page ids."""
        page_ids: list[str] = []
        for kw in keywords:
            properties: dict = {
                Prop.TERM: {"title": [{"text": {"content": kw.term}}]},
                Prop.ORIENTATION: {"select": {"name": kw.orientation}},
                Prop.ARTIFACT_ROLE: {"select": {"name": kw.artifact_role}},
                Prop.WEIGHT: {"number": kw.weight if kw.weight is not None else 1.0},
                Prop.ACTIVE: {"checkbox": False},
            }
            if kw.notes:
                properties[Prop.NOTES] = _rich_text(kw.notes)
            if kw.source:
                properties[Prop.SOURCE] = _rich_text(kw.source)

            data = await self._request(
                "POST",
                "/pages",
                {"parent": {"database_id": self.database_id}, "properties": properties},
            )
            page_ids.append(data["id"])
        return page_ids

    async def update_keyword(self, page_id: str, update: KeywordUpdate) -> None:
        """Patch only the properties set on ``update``."""
        await self._request(
            "PATCH", f"/pages/{page_id}", {"properties": build_update_properties(update)}
        )

    async def close(self):
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
