"""Tests for the news search client, article crawler, structurer and LLM gateway."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from conftest import FakeGateway, failed_result
from signaldesk.analysis.structurer import MAX_CONTENT_CHARS, structure_news_content
from signaldesk.core.exceptions import ExternalServiceError, StructuringError
from signaldesk.llm.gateway import OpenAIGateway
from signaldesk.llm.schemas import LLMTask
from signaldesk.news.crawler import crawl_news_content, extract_article
from signaldesk.news.schemas import Impact
from signaldesk.news.search import NaverNewsClient, parse_pub_date, strip_html


ARTICLE_BODY = (
    "삼성전자가 3분기 연결 기준 영업이익 10조원을 기록했다고 밝혔다. "
    "메모리 가격 회복과 HBM 판매 확대가 실적 개선을 이끌었다."
)

ARTICLE_HTML = f"""
<html>
  <head><title>페이지 제목</title><script>var x = 1;</script></head>
  <body>
    <h2 id="title_area">삼성전자 3분기 영업이익 10조</h2>
    <div id="newsct_article">
      {ARTICLE_BODY}
      <style>.ad {{ display: none; }}</style>
    </div>
  </body>
</html>
"""


# =============================================================================
# News search
# =============================================================================


class TestNaverNewsClient:
    def test_strip_html(self):
        assert strip_html("<b>삼성전자</b> &quot;실적&quot;") == '삼성전자 "실적"'
        assert strip_html(None) is None

    def test_parse_pub_date(self):
        parsed = parse_pub_date("Mon, 13 Oct 2025 09:12:00 +0900")
        assert parsed is not None
        assert (parsed.hour, parsed.utcoffset().total_seconds()) == (9, 9 * 3600)
        assert parse_pub_date("not a date") is None
        assert parse_pub_date(None) is None

    @pytest.mark.asyncio
    async def test_search_parses_items(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["params"] = dict(request.url.params)
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "title": "<b>삼성전자</b> 실적 발표",
                            "description": "요약 &amp; 전망",
                            "link": "https://n.news.naver.com/article/001/1",
                            "originallink": "https://www.yna.co.kr/view/1",
                            "pubDate": "Mon, 13 Oct 2025 09:12:00 +0900",
                        },
                        {"title": "링크 없음", "link": ""},
                    ]
                },
            )

        client = NaverNewsClient("id", "secret", transport=httpx.MockTransport(handler))
        items = await client.search("삼성전자", display=30)

        assert len(items) == 1
        assert items[0].title == "삼성전자 실적 발표"
        assert items[0].description == "요약 & 전망"
        assert items[0].original_link == "https://www.yna.co.kr/view/1"
        assert seen["headers"]["X-Naver-Client-Id"] == "id"
        assert seen["headers"]["X-Naver-Client-Secret"] == "secret"
        assert seen["params"] == {"query": "삼성전자", "display": "30", "sort": "date"}

    @pytest.mark.asyncio
    async def test_http_error_raises_external_service_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={}))
        client = NaverNewsClient("id", "bad", transport=transport)

        with pytest.raises(ExternalServiceError) as exc:
            await client.search("삼성전자")

        assert "HTTP 401" in exc.value.message


# =============================================================================
# Crawler
# =============================================================================


class TestCrawler:
    def test_extract_article_prefers_news_body(self):
        title, content = extract_article(ARTICLE_HTML)

        assert title == "삼성전자 3분기 영업이익 10조"
        assert content == ARTICLE_BODY
        assert "display" not in content

    @pytest.mark.asyncio
    async def test_crawl_success(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, html=ARTICLE_HTML))

        result = await crawl_news_content("https://www.yna.co.kr/view/1", transport=transport)

        assert result.success is True
        assert result.content == ARTICLE_BODY
        assert result.error is None

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        result = await crawl_news_content("ftp://example.com/x")
        assert (result.success, result.error) == (False, "Invalid URL")

    @pytest.mark.asyncio
    async def test_non_2xx(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        result = await crawl_news_content("https://example.com/x", transport=transport)

        assert result.success is False
        assert result.error == "HTTP 404: Not Found"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        result = await crawl_news_content(
            "https://example.com/x", transport=httpx.MockTransport(handler)
        )

        assert result.error == "Request timed out"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await crawl_news_content(
            "https://example.com/x", transport=httpx.MockTransport(handler)
        )

        assert result.success is False
        assert result.error.startswith("Fetch failed")

    @pytest.mark.asyncio
    async def test_too_short_body(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, html="<html><body><p>짧다</p></body></html>")
        )

        result = await crawl_news_content("https://example.com/x", transport=transport)

        assert result.success is False
        assert result.content == ""


# =============================================================================
# Structurer
# =============================================================================


class TestStructurer:
    @pytest.mark.asyncio
    async def test_structures_and_truncates(self):
        gateway = FakeGateway(
            {
                "summary": "3분기 영업이익 10조",
                "financialNumbers": ["영업이익 10조원"],
                "keyFacts": ["HBM 판매 확대"],
                "futureOutlook": "4분기 개선 지속",
                "impact": "high",
            }
        )

        result = await structure_news_content("가" * 5000, "제목", gateway=gateway)

        assert result.summary == "3분기 영업이익 10조"
        assert result.impact == Impact.HIGH
        assert result.financial_numbers == ["영업이익 10조원"]
        prompt = gateway.tasks[0].prompt
        assert "가" * MAX_CONTENT_CHARS in prompt
        assert "가" * (MAX_CONTENT_CHARS + 1) not in prompt

    @pytest.mark.asyncio
    async def test_unknown_impact_becomes_medium(self):
        gateway = FakeGateway({"summary": "요약", "impact": "massive"})

        result = await structure_news_content("본문", gateway=gateway)

        assert result.impact == Impact.MEDIUM
        assert result.key_facts == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"impact": "high"}, {"summary": "요약"}, ["not", "an", "object"]],
    )
    async def test_missing_fields_raise(self, payload):
        with pytest.raises(StructuringError):
            await structure_news_content("본문", gateway=FakeGateway(payload))

    @pytest.mark.asyncio
    async def test_failed_call_raises(self):
        gateway = FakeGateway(lambda task: failed_result(task, "timeout"))

        with pytest.raises(StructuringError) as exc:
            await structure_news_content("본문", gateway=gateway)

        assert "timeout" in exc.value.message


# =============================================================================
# LLM gateway
# =============================================================================


def _completion(content: str | None, tokens: int = 42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=tokens),
    )


def _client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


TASK = LLMTask(custom_id="t1", agent_id="fundamental", symbol="005930", prompt="분석")


class TestOpenAIGateway:
    @pytest.mark.asyncio
    async def test_parses_json_response(self):
        create = AsyncMock(return_value=_completion(json.dumps({"recommendation": "buy"})))
        gateway = OpenAIGateway(model="gpt-4o-mini", client=_client(create))

        result = await gateway.run_realtime(TASK)

        assert result.failed is False
        assert result.parsed_json == {"recommendation": "buy"}
        assert result.tokens_used == 42
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][1] == {"role": "user", "content": "분석"}

    @pytest.mark.asyncio
    async def test_invalid_json_is_failed_result(self):
        create = AsyncMock(return_value=_completion("not json"))
        gateway = OpenAIGateway(client=_client(create))

        result = await gateway.run_realtime(TASK)

        assert result.failed is True
        assert result.error.startswith("Invalid JSON")
        assert result.content == "not json"

    @pytest.mark.asyncio
    async def test_empty_content_is_failed_result(self):
        gateway = OpenAIGateway(client=_client(AsyncMock(return_value=_completion(""))))

        result = await gateway.run_realtime(TASK)

        assert (result.failed, result.error) == (True, "Empty response")

    @pytest.mark.asyncio
    async def test_transport_error_is_failed_result(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
        gateway = OpenAIGateway(client=_client(create))

        result = await gateway.run_realtime(TASK)

        assert result.failed is True
        assert result.custom_id == "t1"

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        gateway = OpenAIGateway(api_key="")

        result = await gateway.run_realtime(TASK)

        assert result.failed is True
        assert "OPENAI_API_KEY" in result.error

    @pytest.mark.asyncio
    async def test_run_keeps_order_and_wraps_exceptions(self):
        create = AsyncMock(side_effect=[_completion('{"n": 1}'), _completion('{"n": 2}')])
        gateway = OpenAIGateway(client=_client(create))
        tasks = [TASK, TASK.model_copy(update={"custom_id": "t2"})]

        results = await gateway.run(tasks)

        assert [r.custom_id for r in results] == ["t1", "t2"]
        assert all(not r.failed for r in results)

    @pytest.mark.asyncio
    async def test_process_wide_gateway_is_replaceable(self, monkeypatch):
        from signaldesk.llm import gateway as gateway_module

        monkeypatch.setattr(gateway_module, "_gateway", None)
        fake = FakeGateway({"summary": "요약", "impact": "low"})
        gateway_module.set_gateway(fake)

        result = await structure_news_content("본문", "제목")

        assert gateway_module.get_gateway() is fake
        assert result.summary == "요약"
        assert len(fake.tasks) == 1
