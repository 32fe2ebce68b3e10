"""Tests for the orthocal API client."""

from datetime import date

import pytest
import responses

from orthodox_daily import orthocal
from orthodox_daily.exceptions import LectionaryError
from orthodox_daily.models import ReadingCategory
from orthodox_daily.orthocal import OrthocalClient, parse_day

DAY_URL = "https://orthocal.info/api/gregorian/2026/10/19/"

DAY_PAYLOAD = {
    "year": 2026,
    "month": 10,
    "day": 19,
    "titles": ["Twentieth Week after Pentecost. Tone two."],
    "fast_level": 0,
    "fast_level_desc": "No Fast",
    "fast_exception_desc": "",
    "feasts": None,
    "saints": ["Prophet Joel", "Martyr Varus"],
    "readings": [
        {
            "source": "Epistle",
            "book": "Apostol",
            "description": "",
            "display": "Philippians 1.1-7",
            "short_display": "Phil 1.1-7",
            "passage": [
                {
                    "book": "PHP",
                    "chapter": 1,
                    "verse": 1,
                    "content": "Paul and Timotheus, the servants of Jesus Christ,",
                    "paragraph_start": True,
                },
                {
                    "book": "PHP",
                    "chapter": 1,
                    "verse": 2,
                    "content": "Grace <i>be</i> unto you, and peace,",
                    "paragraph_start": False,
                },
            ],
        },
        {
            "source": "Gospel",
            "book": "Luke",
            "description": "",
            "display": "Luke 6.24-30",
            "short_display": "Luke 6.24-30",
            "passage": [],
        },
    ],
}


@pytest.fixture(autouse=True)
def clear_day_cache():
    orthocal._day_cache.clear()
    yield
    orthocal._day_cache.clear()


@pytest.fixture
def client():
    return OrthocalClient()


def test_day_url(client):
    assert client.day_url(date(2026, 10, 19)) == DAY_URL
    julian = OrthocalClient(calendar="julian", base_url="http://localhost/api/")
    assert julian.day_url(date(2026, 1, 7)) == "http://localhost/api/julian/2026/1/7/"


def test_parse_day():
    day = parse_day(DAY_PAYLOAD)
    assert day.date == date(2026, 10, 19)
    assert day.feasts == ()
    assert day.saints == ("Prophet Joel", "Martyr Varus")
    assert len(day.readings) == 2

    epistle = day.readings[0]
    assert epistle.category is ReadingCategory.EPISTLE
    assert epistle.source == "Epistle"
    assert len(epistle.verses) == 2
    assert epistle.verses[1].chapter == 1
    assert epistle.verses[1].verse == 2
    assert epistle.verses[1].text == "Grace be unto you, and peace,"

    assert day.readings[1].verses == ()


@responses.activate
def test_get_day_success(client):
    responses.add(responses.GET, DAY_URL, json=DAY_PAYLOAD, status=200)
    day = client.get_day(date(2026, 10, 19))
    assert day.titles[0].startswith("Twentieth Week")
    assert [r.display for r in day.readings] == ["Philippians 1.1-7", "Luke 6.24-30"]


@responses.activate
def test_get_day_is_cached(client):
    responses.add(responses.GET, DAY_URL, json=DAY_PAYLOAD, status=200)
    first = client.get_day(date(2026, 10, 19))
    second = client.get_day(date(2026, 10, 19))
    assert first is second
    assert len(responses.calls) == 1


@responses.activate
def test_get_day_http_error(client):
    responses.add(responses.GET, DAY_URL, status=503)
    with pytest.raises(LectionaryError):
        client.get_day(date(2026, 10, 19))


@responses.activate
def test_get_day_invalid_json(client):
    responses.add(responses.GET, DAY_URL, body="<html>oops</html>", status=200)
    with pytest.raises(LectionaryError):
        client.get_day(date(2026, 10, 19))


@responses.activate
def test_get_day_unexpected_payload(client):
    responses.add(responses.GET, DAY_URL, json={"titles": []}, status=200)
    with pytest.raises(LectionaryError):
        client.get_day(date(2026, 10, 19))


@responses.activate
def test_failed_day_is_not_cached(client):
    responses.add(responses.GET, DAY_URL, status=500)
    responses.add(responses.GET, DAY_URL, json=DAY_PAYLOAD, status=200)
    with pytest.raises(LectionaryError):
        client.get_day(date(2026, 10, 19))
    assert client.get_day(date(2026, 10, 19)).day == 19
