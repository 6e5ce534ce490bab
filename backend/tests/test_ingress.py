from types import SimpleNamespace

import pytest
from kubernetes import client

from conftest import make_ingress
from preview_dashboard.errors import UpstreamUnavailable
from preview_dashboard.ingress import build_release_urls, correlate_ingress_urls


def test_scheme_follows_tls():
    url_map = build_release_urls([
        make_ingress("secure", ["secure.example.com"], tls=True),
        make_ingress("plain", ["plain.example.com"], tls=False),
    ])

    assert url_map == {
        "secure": ["https://secure.example.com"],
        "plain": ["http://plain.example.com"],
    }


def test_release_label_groups_ingresses_and_first_url_wins():
    url_map = build_release_urls([
        make_ingress("app-tls", ["a.example.com"], tls=True, labels={"release": "app"}),
        make_ingress("app-plain", ["a.example.com"], tls=False, labels={"release": "app"}),
    ])

    assert url_map == {"app": ["https://a.example.com"]}


def test_duplicate_rules_are_recorded_once():
    url_map = build_release_urls([
        make_ingress("web", ["web.example.com", "web.example.com", "www.example.com"]),
        make_ingress("web-again", ["web.example.com"], labels={"release": "web"}),
    ])

    assert url_map == {"web": ["http://web.example.com", "http://www.example.com"]}


def test_rules_without_host_contribute_nothing():
    url_map = build_release_urls([
        make_ingress("catch-all", [None]),
        SimpleNamespace(metadata=client.V1ObjectMeta(name="no-spec"), spec=None),
        SimpleNamespace(metadata=None, spec=client.V1IngressSpec(rules=[client.V1IngressRule(host="x.io")])),
    ])

    assert url_map == {}


@pytest.mark.asyncio
async def test_correlate_lists_namespace(kube_client_mock):
    kube_client_mock.list_ingresses.return_value = [make_ingress("web", ["web.example.com"], tls=True)]

    url_map = await correlate_ingress_urls(kube_client_mock, "previews")

    kube_client_mock.list_ingresses.assert_awaited_once_with("previews")
    assert url_map == {"web": ["https://web.example.com"]}


@pytest.mark.asyncio
async def test_correlate_degrades_to_empty_map(kube_client_mock):
    kube_client_mock.list_ingresses.side_effect = UpstreamUnavailable("forbidden")

    assert await correlate_ingress_urls(kube_client_mock, "previews") == {}
