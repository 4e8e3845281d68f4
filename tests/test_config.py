import pytest

from consul_sd.config import (
    RegistrarConfig,
    build_parser,
    parse_consul_addr,
    split_tags,
)
from consul_sd.errors import ConfigurationError


def test_parse_args():
    args = build_parser(environ={}).parse_args([
        "--name", "svc",
        "--port", "9090",
        "--consul-tags", "v1,blue",
        "--consul-tags", "eu",
        "--url", "http://10.0.0.5:9090/",
        "--consul-check_interval", "15s",
        "--consul-check_timeout", "2s",
        "--consul-addr", "https://consul.local",
    ])
    config = RegistrarConfig.from_args(args).validate()

    assert config.name == "svc"
    assert config.port == 9090
    assert config.tags == ["v1", "blue", "eu"]
    assert config.url == "http://10.0.0.5:9090"
    assert config.check_interval == "15s"
    assert config.check_timeout == "2s"
    assert config.consul_address == "https://consul.local:8501"


def test_parser_defaults_from_environment():
    env = {
        "SERVICE_NAME": "orders",
        "SERVICE_PORT": "7000",
        "CONSUL_TAGS": "a,b",
        "CONSUL_HTTP_ADDR": "consul:8500",
    }
    args = build_parser(environ=env).parse_args([])
    config = RegistrarConfig.from_args(args)

    assert config.name == "orders"
    assert config.port == 7000
    assert config.tags == ["a", "b"]
    assert config.url == "http://127.0.0.1:7000"
    assert config.consul_host == "consul"


def test_name_required_without_environment():
    with pytest.raises(SystemExit):
        build_parser(environ={}).parse_args([])


def test_from_env():
    config = RegistrarConfig.from_env({
        "SERVICE_NAME": "svc",
        "SERVICE_PORT": "8081",
        "CONSUL_HTTP_TOKEN": "t0k3n",
    })

    assert config.port == 8081
    assert config.tags == []
    assert config.consul_token == "t0k3n"
    assert config.check_interval == "10s"


def test_from_env_bad_port():
    with pytest.raises(ConfigurationError):
        RegistrarConfig.from_env({"SERVICE_NAME": "svc", "SERVICE_PORT": "http"})


@pytest.mark.parametrize("addr,expected", [
    ("127.0.0.1:8500", ("http", "127.0.0.1", 8500)),
    ("consul", ("http", "consul", 8500)),
    ("https://consul:9501", ("https", "consul", 9501)),
])
def test_parse_consul_addr(addr, expected):
    assert parse_consul_addr(addr) == expected


def test_parse_consul_addr_invalid():
    with pytest.raises(ConfigurationError):
        parse_consul_addr("ftp://consul:21")


def test_split_tags_keeps_order():
    assert split_tags(["b, a", "", "c"]) == ["b", "a", "c"]
    assert split_tags(None) == []


def test_validate():
    with pytest.raises(ConfigurationError):
        RegistrarConfig(name="").validate()
    with pytest.raises(ConfigurationError):
        RegistrarConfig(name="svc", port=70000).validate()
    with pytest.raises(ConfigurationError):
        RegistrarConfig(name="svc", url="localhost:8080").validate()
