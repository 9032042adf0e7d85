"""
Tests for the PubMed E-utilities client.

Tests for:
- extract_last_name: author string parsing for identifier search
- PubMedClient: summaries, citation counts, abstracts, identifier search
- Transport: timeout, bounded retry with backoff, typed errors
- parse_abstracts_xml: EFetch XML parsing
"""

import httpx
import pytest

from src.pubmed.client import (
    PubMedClient,
    PubMedRequestError,
    PubMedResponseError,
    PubMedTimeoutError,
    extract_last_name,
    parse_abstracts_xml,
)

EFETCH_XML = """<?xml version="1.0" ?>
<PubmedArticleSet>
  <PubmedArticle>
    <MedlineCitation Status="MEDLINE" Owner="NLM">
      <PMID Version="1">31234567</PMID>
      <Article>
        <Abstract>
          <AbstractText Label="BACKGROUND">Diabetes is <i>common</i>.</AbstractText>
          <AbstractText Label="RESULTS">Metformin lowers HbA1c.</AbstractText>
        </Abstract>
      </Article>
    </MedlineCitation>
  </PubmedArticle>
  <PubmedArticle>
    <MedlineCitation>
      <PMID Version="1">30000001</PMID>
      <Article><ArticleTitle>No abstract here</ArticleTitle></Article>
    </MedlineCitation>
  </PubmedArticle>
</PubmedArticleSet>
"""


def _mock_http(mocker, *responses):
    """Patch httpx.AsyncClient; each GET returns/raises the next response."""
    mock_client = mocker.AsyncMock()
    mock_client.get.side_effect = list(responses)
    mock_client.__aenter__ = mocker.AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = mocker.AsyncMock(return_value=False)
    mocker.patch("httpx.AsyncClient", return_value=mock_client)
    return mock_client


def _json_response(mocker, payload):
    response = mocker.Mock()
    response.status_code = 200
    response.json.return_value = payload
    response.raise_for_status = mocker.Mock()
    return response


def _status_error(mocker, code=500):
    return httpx.HTTPStatusError(
        "Server Error",
        request=mocker.Mock(),
        response=mocker.Mock(status_code=code),
    )


# ============================================
# Author Parsing
# ============================================


class TestExtractLastName:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "author, expected",
        [
            ("Doe, John", "Doe"),
            ("Doe J", "Doe"),
            ("Smith JA", "Smith"),
            ("John Doe", "Doe"),
            ("Madonna", "Madonna"),
            ("Doe J; Roe R; Poe E", "Doe"),
            ("  Garcia, Maria ; Lee K", "Garcia"),
        ],
    )
    def test_supported_forms(self, author, expected):
        assert extract_last_name(author) == expected

    @pytest.mark.unit
    def test_short_surname_is_read_as_initials(self):
        """Known gap: a two-letter surname in "First Last" order is misread."""
        assert extract_last_name("Wei Li") == "Wei"

    @pytest.mark.unit
    @pytest.mark.parametrize("author", [None, "", "   ", "; Doe J"])
    def test_empty(self, author):
        assert extract_last_name(author) is None


# ============================================
# Operations
# ============================================


class TestFetchSummaries:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self, mocker):
        mock_cls = mocker.patch("httpx.AsyncClient")
        client = PubMedClient()
        assert await client.fetch_summaries([]) == {}
        mock_cls.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parses_esummary(self, mocker):
        payload = {
            "result": {
                "uids": ["111", "222"],
                "111": {
                    "uid": "111",
                    "title": "Metformin in T2D.",
                    "authors": [{"name": "Doe J"}],
                    "source": "BMJ",
                    "fulljournalname": "BMJ (Clinical research ed.)",
                    "pubdate": "2020 Jan",
                    "pubtype": ["Randomized Controlled Trial"],
                    "articleids": [{"idtype": "doi", "value": "10.1/x"}],
                },
                "222": "not an object",
            }
        }
        mock_client = _mock_http(mocker, _json_response(mocker, payload))

        summaries = await PubMedClient(api_key="k", email="a@b.c").fetch_summaries(
            ["111", "222"]
        )

        assert list(summaries) == ["111"]
        summary = summaries["111"]
        assert summary.title == "Metformin in T2D."
        assert summary.authors == ["Doe J"]
        assert summary.fulljournalname == "BMJ (Clinical research ed.)"
        assert summary.doi == "10.1/x"
        assert summary.pmc_id is None

        url = mock_client.get.call_args[0][0]
        params = mock_client.get.call_args[1]["params"]
        assert url.endswith("/esummary.fcgi")
        assert params["id"] == "111,222"
        assert params["retmode"] == "json"
        assert params["version"] == "2.0"
        assert params["api_key"] == "k"
        assert params["email"] == "a@b.c"
        assert params["tool"] == "MedCite"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_error_entries_skipped(self, mocker):
        payload = {
            "result": {
                "uids": ["111", "404"],
                "111": {"uid": "111", "title": "Known article."},
                "404": {"uid": "404", "error": "cannot get document summary"},
            }
        }
        _mock_http(mocker, _json_response(mocker, payload))

        summaries = await PubMedClient().fetch_summaries(["111", "404"])

        assert list(summaries) == ["111"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_json_raises_response_error(self, mocker):
        response = mocker.Mock()
        response.raise_for_status = mocker.Mock()
        response.json.side_effect = ValueError("bad json")
        _mock_http(mocker, response)

        with pytest.raises(PubMedResponseError):
            await PubMedClient().fetch_summaries(["1"])


class TestFetchCitationCounts:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self, mocker):
        mock_cls = mocker.patch("httpx.AsyncClient")
        assert await PubMedClient().fetch_citation_counts([]) == {}
        mock_cls.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_counts_cited_in_links(self, mocker):
        payload = {
            "linksets": [
                {
                    "dbfrom": "pubmed",
                    "ids": ["111"],
                    "linksetdbs": [
                        {"dbto": "pubmed", "linkname": "pubmed_pubmed", "links": ["9"] * 7},
                        {
                            "dbto": "pubmed",
                            "linkname": "pubmed_pubmed_citedin",
                            "links": ["1", "2", "3"],
                        },
                    ],
                },
                {"dbfrom": "pubmed", "ids": ["222"]},
            ]
        }
        mock_client = _mock_http(mocker, _json_response(mocker, payload))

        counts = await PubMedClient().fetch_citation_counts(["111", "222", "333"])

        assert counts == {"111": 3, "222": 0, "333": 0}
        params = mock_client.get.call_args[1]["params"]
        assert params["linkname"] == "pubmed_pubmed_citedin"
        assert params["dbfrom"] == "pubmed"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_accepts_link_key(self, mocker):
        payload = {
            "linksets": [
                {
                    "ids": ["111"],
                    "linksetdbs": [
                        {"linkname": "pubmed_pubmed_citedin", "link": ["1", "2"]}
                    ],
                }
            ]
        }
        _mock_http(mocker, _json_response(mocker, payload))
        assert await PubMedClient().fetch_citation_counts(["111"]) == {"111": 2}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unrequested_linkset_ignored(self, mocker):
        payload = {
            "linksets": [
                {
                    "ids": ["999"],
                    "linksetdbs": [
                        {"linkname": "pubmed_pubmed_citedin", "links": ["5"]}
                    ],
                }
            ]
        }
        _mock_http(mocker, _json_response(mocker, payload))
        assert await PubMedClient().fetch_citation_counts(["1"]) == {"1": 0}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_linksets_is_all_zero(self, mocker):
        _mock_http(mocker, _json_response(mocker, {"header": {}}))
        counts = await PubMedClient().fetch_citation_counts(["1", "2"])
        assert counts == {"1": 0, "2": 0}


class TestFetchAbstracts:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self, mocker):
        mock_cls = mocker.patch("httpx.AsyncClient")
        assert await PubMedClient().fetch_abstracts([]) == {}
        mock_cls.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parses_efetch_xml(self, mocker):
        response = mocker.Mock()
        response.raise_for_status = mocker.Mock()
        response.text = EFETCH_XML
        mock_client = _mock_http(mocker, response)

        abstracts = await PubMedClient().fetch_abstracts(["31234567", "30000001"])

        assert abstracts == {
            "31234567": "Diabetes is common. Metformin lowers HbA1c."
        }
        params = mock_client.get.call_args[1]["params"]
        assert params["retmode"] == "xml"
        assert params["rettype"] == "abstract"


class TestParseAbstractsXml:
    @pytest.mark.unit
    def test_omits_articles_without_abstract(self):
        assert "30000001" not in parse_abstracts_xml(EFETCH_XML)

    @pytest.mark.unit
    @pytest.mark.parametrize("xml_text", ["", "   ", "<PubmedArticleSet><unclosed>"])
    def test_empty_or_malformed(self, xml_text):
        assert parse_abstracts_xml(xml_text) == {}


class TestResolveIdentifier:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_title_and_author_term(self, mocker):
        payload = {"esearchresult": {"count": "1", "idlist": ["31234567"]}}
        mock_client = _mock_http(mocker, _json_response(mocker, payload))

        pmid = await PubMedClient().resolve_identifier(
            "Type 2 diabetes management", "Doe, John; Roe R"
        )

        assert pmid == "31234567"
        params = mock_client.get.call_args[1]["params"]
        assert params["term"] == "Type 2 diabetes management[Title] AND Doe[Author]"
        assert params["retmax"] == "1"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_title_only(self, mocker):
        payload = {"esearchresult": {"idlist": ["5"]}}
        mock_client = _mock_http(mocker, _json_response(mocker, payload))
        assert await PubMedClient().resolve_identifier("Asthma in adults") == "5"
        assert mock_client.get.call_args[1]["params"]["term"] == "Asthma in adults[Title]"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_match_returns_none(self, mocker):
        _mock_http(mocker, _json_response(mocker, {"esearchresult": {"idlist": []}}))
        assert await PubMedClient().resolve_identifier("Unknown paper") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_returns_none(self, mocker):
        _mock_http(mocker, httpx.ConnectError("refused"), httpx.ConnectError("refused"))
        client = PubMedClient(retry_base_delay=0)
        assert await client.resolve_identifier("Some title") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blank_title_makes_no_call(self, mocker):
        mock_cls = mocker.patch("httpx.AsyncClient")
        assert await PubMedClient().resolve_identifier("  ") is None
        mock_cls.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", [12345, None, ["a title"]])
    async def test_non_string_title_makes_no_call(self, mocker, title):
        mock_cls = mocker.patch("httpx.AsyncClient")
        assert await PubMedClient().resolve_identifier(title) is None
        mock_cls.assert_not_called()


# ============================================
# Transport
# ============================================


class TestRetryPolicy:
    @pytest.mark.unit
    def test_backoff_schedule(self):
        client = PubMedClient(retry_base_delay=0.5)
        assert [client.backoff_delay(a) for a in range(4)] == [0.5, 1.0, 2.0, 4.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, mocker):
        sleep = mocker.patch("asyncio.sleep", new=mocker.AsyncMock())
        ok = _json_response(mocker, {"linksets": []})
        mock_client = _mock_http(mocker, _status_error(mocker, 503), ok)

        counts = await PubMedClient(retry_attempts=1).fetch_citation_counts(["1"])

        assert counts == {"1": 0}
        assert mock_client.get.call_count == 2
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_request_error(self, mocker):
        sleep = mocker.patch("asyncio.sleep", new=mocker.AsyncMock())
        mock_client = _mock_http(
            mocker, *[httpx.ConnectError("refused") for _ in range(3)]
        )

        with pytest.raises(PubMedRequestError) as exc_info:
            await PubMedClient(retry_attempts=2).fetch_summaries(["1"])

        assert mock_client.get.call_count == 3
        assert exc_info.value.endpoint == "esummary.fcgi"
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_raises_timeout_error(self, mocker):
        mocker.patch("asyncio.sleep", new=mocker.AsyncMock())
        _mock_http(mocker, httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow"))

        with pytest.raises(PubMedTimeoutError):
            await PubMedClient(retry_attempts=1).fetch_citation_counts(["1"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_retries_means_single_attempt(self, mocker):
        mock_client = _mock_http(mocker, _status_error(mocker, 500))
        with pytest.raises(PubMedRequestError):
            await PubMedClient(retry_attempts=0).fetch_abstracts(["1"])
        assert mock_client.get.call_count == 1

