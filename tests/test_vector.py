import json

import pytest
import yaml

from testnet_deploy.observability.vector import JobType, VectorConfig
from testnet_deploy.testnet.inventory import TargetGroup

ADDR = "[2a02:800:2:2003:5000:f6ff:fec4:4c86]:9091"


@pytest.fixture
def group():
    return TargetGroup(
        node_name="iylgr-zpxwq-kqgmf-4srtx-o4eey-d6bln-smmq6-we7px-ibdea-nondy-eae",
        ic_name="mercury",
        targets=(ADDR,),
        subnet="x33ed-h457x-bsgyx-oqxqf-6pzwv-wkhzr-rm2j3-npodi-purzm-n66cg-gae",
    )


class TestVectorConfig:
    def test_keys_and_endpoint(self, group):
        config = VectorConfig.from_target_groups([group], JobType.ORCHESTRATOR, scrape_interval=30)

        assert f"{ADDR}-source" in config.sources
        assert f"{ADDR}-transform" in config.transforms
        assert config.sources[f"{ADDR}-source"]["endpoints"] == [f"http://{ADDR}/"]

    def test_source_fields(self, group):
        source = VectorConfig.from_target_groups([group], JobType.NODE_EXPORTER, 15).sources[f"{ADDR}-source"]

        assert source["type"] == "prometheus_scrape"
        assert source["endpoints"] == [f"http://{ADDR}/metrics"]
        assert source["scrape_interval_secs"] == 15
        assert source["instance_tag"] == "instance"
        assert source["endpoint_tag"] == "endpoint"
        assert "proxy" not in source

    def test_proxy(self, group):
        config = VectorConfig.from_target_groups(
            [group], JobType.REPLICA, proxy_url="http://proxy.example:3128"
        )

        assert config.sources[f"{ADDR}-source"]["proxy"] == {
            "enabled": True,
            "http": "http://proxy.example:3128",
        }

    def test_transform_tags(self, group):
        transform = VectorConfig.from_target_groups([group], JobType.ORCHESTRATOR).transforms[
            f"{ADDR}-transform"
        ]

        assert transform["type"] == "remap"
        assert transform["inputs"] == [f"{ADDR}-source"]
        lines = transform["source"].split("\n")
        assert '.tags.ic = "mercury"' in lines
        assert f'.tags.ic_node = "{group.node_name}"' in lines
        assert f'.tags.ic_subnet = "{group.subnet}"' in lines
        assert '.tags.job = "orchestrator"' in lines

    def test_no_subnet_tag_without_subnet(self):
        group = TargetGroup(node_name="bn-0", ic_name="small01", targets=("10.0.0.1:9100",))

        transform = VectorConfig.from_target_groups([group], JobType.NODE_EXPORTER).transforms[
            "10.0.0.1:9100-transform"
        ]

        assert "ic_subnet" not in transform["source"]

    def test_tag_values_are_escaped(self):
        group = TargetGroup(node_name='evil" .x = 1', ic_name="small01", targets=("10.0.0.1:9090",))

        source = VectorConfig.from_target_groups([group], JobType.REPLICA).transforms[
            "10.0.0.1:9090-transform"
        ]["source"]

        assert '.tags.ic_node = "evil\\" .x = 1"' in source.split("\n")

    def test_non_ascii_tag_values_kept(self):
        group = TargetGroup(node_name="néud-0", ic_name="small01", targets=("10.0.0.1:9090",))

        source = VectorConfig.from_target_groups([group], JobType.REPLICA).transforms[
            "10.0.0.1:9090-transform"
        ]["source"]

        assert '.tags.ic_node = "néud-0"' in source.split("\n")

    def test_group_without_targets(self):
        with pytest.raises(ValueError):
            VectorConfig.from_target_groups(
                [TargetGroup(node_name="n", ic_name="x", targets=())], JobType.REPLICA
            )

    def test_render(self, group):
        config = VectorConfig.from_target_groups([group], JobType.REPLICA)

        assert json.loads(config.render("json")) == config.to_dict()
        assert yaml.safe_load(config.render("yaml")) == config.to_dict()
        with pytest.raises(ValueError):
            config.render("toml")


def test_job_types():
    assert JobType.from_name("replica") is JobType.REPLICA
    assert JobType.REPLICA.port == 9090
    assert str(JobType.NODE_EXPORTER) == "node_exporter"
    with pytest.raises(ValueError):
        JobType.from_name("unknown")
