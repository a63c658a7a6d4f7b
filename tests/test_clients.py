# =============================================================================
# tests/test_clients.py - Vendor HTTP Client Tests
# =============================================================================
# This module contains tests for:
# - extract_asin / format_reviews_for_prompt
# - RapidAPIClient request shape and error handling
# - PixelcutClient request shape, response normalisation and error mapping
#
# All HTTP goes through httpx.MockTransport; nothing leaves the process.
# =============================================================================

import json

import httpx
import pytest

from lib.pixelcut_client import PixelcutClient, PixelcutError, extract_result_url
from lib.rapidapi_client import RapidAPIClient, RapidAPIError, extract_asin, format_reviews_for_prompt


def _mock_http(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# =============================================================================
# ASIN helpers
# =============================================================================

class TestExtractAsin:
    """Tests for extract_asin."""

    @pytest.mark.parametrize("value,expected", [
        ("B08N5WRWNW", "B08N5WRWNW"),
        ("  b08n5wrwnw ", "B08N5WRWNW"),
        ("https://www.amazon.com.br/dp/B08N5WRWNW?th=1", "B08N5WRWNW"),
        ("https://www.amazon.com/Some-Product/dp/b08n5wrwnw/ref=sr_1_1", "B08N5WRWNW"),
        ("https://www.amazon.com/gp/product/B07XJ8C8F5", "B07XJ8C8F5"),
        ("https://www.amazon.com.br/product-reviews/B07XJ8C8F5/", "B07XJ8C8F5"),
    ])
    def test_valid(self, value, expected):
        assert extract_asin(value) == expected

    @pytest.mark.parametrize("value", ["", "not an asin", "B08N5", "https://www.amazon.com/s?k=mug"])
    def test_invalid(self, value):
        assert extract_asin(value) is None

    def test_format_reviews_for_prompt(self):
        text = format_reviews_for_prompt([
            {"review_title": "Excelente ", "review_star_rating": "5", "review_comment": "Mantém quente."},
            {"review_title": "Vaza", "review_star_rating": "", "review_comment": ""},
        ])

        assert text == "[5 stars] Excelente\nMantém quente.\n\n[? stars] Vaza"


# =============================================================================
# RapidAPI
# =============================================================================

class TestRapidAPIClient:
    """Tests for RapidAPIClient."""

    def test_reviews_request_and_reduction(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["headers"] = request.headers
            return httpx.Response(200, json={
                "status": "OK",
                "data": {"reviews": [
                    {"review_title": "Bom", "review_star_rating": 4, "review_comment": "Gostei", "extra": "x"},
                    {"review_title": None, "review_star_rating": None, "review_comment": None},
                ]},
            })

        client = RapidAPIClient(api_key="rk", host="amazon.test", http_client=_mock_http(handler))
        reviews = client.get_product_reviews("B08N5WRWNW", country="US", page=2)

        assert seen["url"].host == "amazon.test"
        assert seen["url"].path == "/product-reviews"
        assert seen["url"].params["asin"] == "B08N5WRWNW"
        assert seen["url"].params["page"] == "2"
        assert seen["url"].params["country"] == "US"
        assert seen["headers"]["X-RapidAPI-Key"] == "rk"
        assert reviews == [
            {"review_title": "Bom", "review_star_rating": "4", "review_comment": "Gostei"},
            {"review_title": "", "review_star_rating": "", "review_comment": ""},
        ]

    def test_invalid_sort_rejected_without_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        client = RapidAPIClient(api_key="rk", http_client=_mock_http(handler))

        with pytest.raises(RapidAPIError) as exc_info:
            client.get_product_reviews("B08N5WRWNW", sort_by="RANDOM")
        assert exc_info.value.code == "INVALID_SORT"

    def test_not_configured(self):
        client = RapidAPIClient(api_key="", http_client=_mock_http(lambda r: httpx.Response(200)))

        assert client.is_configured is False
        with pytest.raises(RapidAPIError) as exc_info:
            client.get_product_details("B08N5WRWNW")
        assert exc_info.value.code == "RAPIDAPI_NOT_CONFIGURED"

    def test_http_error(self):
        client = RapidAPIClient(
            api_key="rk",
            http_client=_mock_http(lambda r: httpx.Response(429, text="Too many requests")),
        )

        with pytest.raises(RapidAPIError) as exc_info:
            client.search_products("garrafa")
        assert exc_info.value.status_code == 429
        assert exc_info.value.suggestion is not None

    def test_non_ok_status(self):
        client = RapidAPIClient(
            api_key="rk",
            http_client=_mock_http(lambda r: httpx.Response(200, json={"status": "ERROR", "error": "bad"})),
        )

        with pytest.raises(RapidAPIError):
            client.get_product_details("B08N5WRWNW")

    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ])
    def test_unreadable_body(self, response):
        client = RapidAPIClient(api_key="rk", http_client=_mock_http(lambda r: response))

        with pytest.raises(RapidAPIError) as exc_info:
            client.get_product_details("B08N5WRWNW")
        assert exc_info.value.code == "RAPIDAPI_BAD_RESPONSE"

    def test_search_shape(self):
        client = RapidAPIClient(
            api_key="rk",
            http_client=_mock_http(lambda r: httpx.Response(200, json={
                "status": "OK",
                "data": {"total_products": 2, "products": [{"asin": "A"}, {"asin": "B"}]},
            })),
        )

        result = client.search_products("garrafa térmica")

        assert result == {"total_products": 2, "products": [{"asin": "A"}, {"asin": "B"}]}


# =============================================================================
# PixelCut
# =============================================================================

class TestExtractResultUrl:
    """PixelCut answers in several shapes."""

    @pytest.mark.parametrize("payload,expected", [
        ({"result_url": "https://cdn/x.png"}, "https://cdn/x.png"),
        ({"image_url": "https://cdn/y.png"}, "https://cdn/y.png"),
        ({"data": {"url": "https://cdn/z.png"}}, "https://cdn/z.png"),
        ({"image": "QUJD"}, "data:image/png;base64,QUJD"),
        ({"image": "data:image/jpeg;base64,QUJD"}, "data:image/jpeg;base64,QUJD"),
    ])
    def test_known_shapes(self, payload, expected):
        assert extract_result_url(payload) == expected

    def test_unknown_shape(self):
        with pytest.raises(PixelcutError) as exc_info:
            extract_result_url({"foo": "bar"})
        assert exc_info.value.code == "PIXELCUT_BAD_RESPONSE"


class TestPixelcutClient:
    """Tests for PixelcutClient."""

    def test_upscale_with_url(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["key"] = request.headers["X-API-KEY"]
            return httpx.Response(200, json={"result_url": "https://cdn/up.png"})

        client = PixelcutClient(api_key="pk", base_url="https://pixelcut.test/v1/", http_client=_mock_http(handler))
        result = client.upscale("https://example.com/photo.jpg", scale=4)

        assert result == "https://cdn/up.png"
        assert seen["path"] == "/v1/upscale"
        assert seen["body"] == {"image_url": "https://example.com/photo.jpg", "scale": 4}
        assert seen["key"] == "pk"

    def test_remove_background_with_data_url(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"image": "QUJD"})

        client = PixelcutClient(api_key="pk", base_url="https://pixelcut.test", http_client=_mock_http(handler))
        result = client.remove_background("data:image/jpeg;base64,AAAA")

        assert seen["body"] == {"image": "data:image/jpeg;base64,AAAA", "format": "png"}
        assert result == "data:image/png;base64,QUJD"

    def test_invalid_scale(self):
        client = PixelcutClient(api_key="pk", http_client=_mock_http(lambda r: httpx.Response(200)))

        with pytest.raises(PixelcutError) as exc_info:
            client.upscale("https://example.com/photo.jpg", scale=3)
        assert exc_info.value.code == "INVALID_SCALE"

    @pytest.mark.parametrize("error_code,expected", [
        ("insufficient_api_credits", "PIXELCUT_NO_CREDITS"),
        ("invalid_parameter", "PIXELCUT_INVALID_IMAGE"),
        ("something_else", "PIXELCUT_ERROR"),
    ])
    def test_error_mapping(self, error_code, expected):
        client = PixelcutClient(
            api_key="pk",
            base_url="https://pixelcut.test",
            http_client=_mock_http(
                lambda r: httpx.Response(402, json={"error_code": error_code, "error": "nope"})
            ),
        )

        with pytest.raises(PixelcutError) as exc_info:
            client.remove_background("https://example.com/photo.jpg")
        assert exc_info.value.code == expected
        assert exc_info.value.status_code == 402

    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ])
    def test_unreadable_body(self, response):
        client = PixelcutClient(api_key="pk", base_url="https://pixelcut.test", http_client=_mock_http(lambda r: response))

        with pytest.raises(PixelcutError) as exc_info:
            client.remove_background("https://example.com/photo.jpg")
        assert exc_info.value.code == "PIXELCUT_BAD_RESPONSE"

    def test_error_body_that_is_not_an_object(self):
        client = PixelcutClient(
            api_key="pk",
            base_url="https://pixelcut.test",
            http_client=_mock_http(lambda r: httpx.Response(500, json=["upstream", "down"])),
        )

        with pytest.raises(PixelcutError) as exc_info:
            client.upscale("https://example.com/photo.jpg", scale=2)
        assert exc_info.value.status_code == 500
        assert "upstream" in exc_info.value.message

    def test_not_configured(self):
        client = PixelcutClient(api_key="", http_client=_mock_http(lambda r: httpx.Response(200)))

        with pytest.raises(PixelcutError) as exc_info:
            client.remove_background("https://example.com/photo.jpg")
        assert exc_info.value.code == "PIXELCUT_NOT_CONFIGURED"
