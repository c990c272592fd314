import logging
import re

from pixelgate.router import (
    Request,
    Response,
    Router,
    log_request,
    log_response,
    replace_remote_addr,
)


def make_router(prefix=""):
    calls = []

    def handler(req_id, response, request):
        calls.append((req_id, request.path))
        response.body = b"ok"

    router = Router(prefix)
    return router, handler, calls


def test_prefix_route_matches():
    router, handler, calls = make_router()
    router.get("/health", handler)
    response = router.handle(Request("GET", "/health/deep"))
    assert response.status == 200
    assert response.body == b"ok"
    assert calls[0][1] == "/health/deep"


def test_exact_route_requires_full_match():
    router, handler, calls = make_router()
    router.get("/", handler, True)
    response = router.handle(Request("GET", "/other"))
    assert response.status == 404
    assert calls == []


def test_router_prefix_is_prepended():
    router, handler, calls = make_router("/base")
    router.get("/img", handler)
    assert router.handle(Request("GET", "/img/x")).status == 404
    assert router.handle(Request("GET", "/base/img/x")).status == 200
    assert len(calls) == 1


def test_method_must_match():
    router, handler, calls = make_router()
    router.head("/x", handler)
    assert router.handle(Request("GET", "/x")).status == 404
    assert router.handle(Request("HEAD", "/x")).status == 200


def test_valid_request_id_is_kept():
    router, handler, calls = make_router()
    router.options("/", handler)
    response = router.handle(Request("OPTIONS", "/", headers={"x-request-id": "abc_DEF-1"}))
    assert response.headers["X-Request-ID"] == "abc_DEF-1"
    assert calls[0][0] == "abc_DEF-1"
    assert response.headers["Server"] == "pixelgate"


def test_invalid_request_id_is_replaced():
    router, handler, calls = make_router()
    router.get("/", handler)
    response = router.handle(Request("GET", "/", headers={"X-Request-ID": "bad id!"}))
    req_id = response.headers["X-Request-ID"]
    assert req_id != "bad id!"
    assert re.fullmatch(r"[A-Za-z0-9_\-]+", req_id)
    assert calls[0][0] == req_id


def test_forwarded_for_uses_first_address():
    router, handler, _ = make_router()
    router.get("/", handler)
    request = Request(
        "GET", "/", headers={"X-Forwarded-For": "1.2.3.4, 5.6.7.8"}, remote_addr="10.0.0.1:1234"
    )
    router.handle(request)
    assert request.remote_addr == "1.2.3.4:1234"


def test_cf_connecting_ip_takes_precedence():
    router, handler, _ = make_router()
    router.get("/", handler)
    request = Request(
        "GET",
        "/",
        headers={"CF-Connecting-IP": "9.9.9.9", "X-Real-IP": "8.8.8.8"},
        remote_addr="10.0.0.1:1234",
    )
    router.handle(request)
    assert request.remote_addr == "9.9.9.9:1234"


def test_replace_remote_addr_defaults_port():
    request = Request("GET", "/", remote_addr="garbage")
    replace_remote_addr(request, " 1.2.3.4 ")
    assert request.remote_addr == "1.2.3.4:80"


def test_replace_remote_addr_brackets_ipv6():
    request = Request("GET", "/", remote_addr="1.2.3.4:5678")
    replace_remote_addr(request, "::1")
    assert request.remote_addr == "[::1]:5678"


def test_timer_cancelled_after_handling():
    router, handler, _ = make_router()
    router.get("/", handler)
    request = Request("GET", "/")
    router.handle(request)
    assert request.timer is not None
    assert request.timer.done is True


def test_log_request_fields(caplog):
    caplog.set_level(logging.INFO, logger="pixelgate.router")
    request = Request("GET", "/path?q=1", remote_addr="1.2.3.4:80")
    fields = log_request("rid", request)
    assert fields == {"request_id": "rid", "method": "GET", "client_ip": "1.2.3.4"}
    assert "Started /path?q=1" in caplog.text


def test_log_response_levels(caplog):
    caplog.set_level(logging.INFO, logger="pixelgate.router")
    request = Request("GET", "/a", remote_addr="1.2.3.4:80")
    log_response("rid", request, 500, None)
    log_response("rid", request, 404, None)
    log_response("rid", request, 200, None)
    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.ERROR, logging.WARNING, logging.INFO]


def test_log_response_merges_additional_fields():
    request = Request("GET", "/a", remote_addr="1.2.3.4:80")
    error = ValueError("boom")
    fields = log_response("rid", request, 422, error, {"image_url": "local:///a.png"}, {"x": 1})
    assert fields["status"] == 422
    assert fields["error"] is error
    assert fields["image_url"] == "local:///a.png"
    assert fields["x"] == 1
    assert "stack" not in fields


def test_response_defaults():
    response = Response()
    assert (response.status, response.headers, response.body) == (200, {}, b"")