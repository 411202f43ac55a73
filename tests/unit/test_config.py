from pathlib import Path

import pytest
import yaml

from ec2runner.core.config import (
    ConfigLoader,
    RunnerConfig,
    input_env_var,
    normalize_input_name,
)


def write_yaml(path: Path, data: dict) -> str:
    path.write_text(yaml.dump(data))
    return str(path)


class TestInputNames:
    def test_env_var_keeps_hyphens(self) -> None:
        assert input_env_var("ec2-image-id") == "INPUT_EC2-IMAGE-ID"
        assert input_env_var("mode") == "INPUT_MODE"

    def test_normalize_underscores(self) -> None:
        assert normalize_input_name("ec2_image_id") == "ec2-image-id"
        assert normalize_input_name("Subnet-Id") == "subnet-id"


class TestLoadConfigFile:
    def test_load_defaults_section(self, tmp_path: Path) -> None:
        path = write_yaml(
            tmp_path / "ec2runner.yaml",
            {"defaults": {"subnet-id": "subnet-1", "ec2_instance_type": "c5.large"}},
        )

        config = ConfigLoader(environ={}).load_config_file(path)

        assert config["defaults"]["subnet-id"] == "subnet-1"
        assert config["defaults"]["ec2_instance_type"] == "c5.large"

    def test_missing_file_returns_empty_defaults(self) -> None:
        config = ConfigLoader(environ={}).load_config_file("/nonexistent/ec2runner.yaml")

        assert config == {"defaults": {}}

    def test_path_from_env_variable(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "custom.yaml", {"defaults": {"region": "eu-west-1"}})

        loader = ConfigLoader(environ={"EC2RUNNER_CONFIG": path})

        assert loader.load_config_file()["defaults"]["region"] == "eu-west-1"

    def test_env_interpolation(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CI_SUBNET", "subnet-from-env")
        path = tmp_path / "ec2runner.yaml"
        path.write_text(
            "defaults:\n"
            "  subnet-id: ${oc.env:CI_SUBNET}\n"
            "  region: ${oc.env:CI_REGION_UNSET,us-east-2}\n"
        )

        defaults = ConfigLoader(environ={}).load_config_file(str(path))["defaults"]

        assert defaults["subnet-id"] == "subnet-from-env"
        assert defaults["region"] == "us-east-2"

    def test_invalid_yaml_raises_value_error(self, tmp_path: Path) -> None:
        path = tmp_path / "ec2runner.yaml"
        path.write_text("defaults: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            ConfigLoader(environ={}).load_config_file(str(path))

    def test_non_mapping_defaults_rejected(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "ec2runner.yaml", {"defaults": ["a", "b"]})

        with pytest.raises(ValueError, match="must be a mapping"):
            ConfigLoader(environ={}).load_config_file(path)

    def test_unknown_keys_warn(self, tmp_path: Path, caplog) -> None:
        path = write_yaml(tmp_path / "ec2runner.yaml", {"defaults": {"disk_size": 50}})

        ConfigLoader(environ={}).load_config_file(path)

        assert "disk-size" in caplog.text


class TestResolve:
    def test_built_in_defaults(self, tmp_path: Path) -> None:
        config = ConfigLoader(environ={}).build(config_path=str(tmp_path / "none.yaml"))

        assert config == RunnerConfig()
        assert config.ec2_instance_type == "t3.micro"
        assert config.command_max_wait_secs == 300
        assert config.instance_running_timeout_secs == 600

    def test_environment_inputs(self, tmp_path: Path) -> None:
        environ = {
            "INPUT_MODE": "start",
            "INPUT_EC2-IMAGE-ID": "ami-1",
            "INPUT_SECURITY-GROUP-ID": "sg-1",
            "INPUT_COMMAND-MAX-WAIT-SECS": "120",
        }

        config = ConfigLoader(environ=environ).build(config_path=str(tmp_path / "none.yaml"))

        assert config.mode == "start"
        assert config.ec2_image_id == "ami-1"
        assert config.security_group_id == "sg-1"
        assert config.command_max_wait_secs == 120

    def test_precedence_cli_over_env_over_file(self, tmp_path: Path) -> None:
        path = write_yaml(
            tmp_path / "ec2runner.yaml",
            {
                "defaults": {
                    "subnet-id": "subnet-file",
                    "ec2-image-id": "ami-file",
                    "ec2-instance-type": "t3.small",
                }
            },
        )
        environ = {"INPUT_EC2-IMAGE-ID": "ami-env", "INPUT_SUBNET-ID": "subnet-env"}

        config = ConfigLoader(environ=environ).build(
            cli_values={"subnet_id": "subnet-cli"}, config_path=path
        )

        assert config.subnet_id == "subnet-cli"
        assert config.ec2_image_id == "ami-env"
        assert config.ec2_instance_type == "t3.small"

    def test_empty_values_do_not_override(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "ec2runner.yaml", {"defaults": {"subnet-id": "subnet-file"}})
        environ = {"INPUT_SUBNET-ID": "", "INPUT_EC2-INSTANCE-TYPE": "   "}

        config = ConfigLoader(environ=environ).build(
            cli_values={"subnet_id": None, "command": ""}, config_path=path
        )

        assert config.subnet_id == "subnet-file"
        assert config.ec2_instance_type == "t3.micro"
        assert config.command == ""

    def test_small_max_wait_is_floored(self, tmp_path: Path) -> None:
        config = ConfigLoader(environ={"INPUT_COMMAND-MAX-WAIT-SECS": "3"}).build(
            config_path=str(tmp_path / "none.yaml")
        )

        assert config.command_max_wait_secs == 6

    def test_bad_integer_raises_value_error(self, tmp_path: Path) -> None:
        loader = ConfigLoader(environ={"INPUT_COMMAND-MAX-WAIT-SECS": "soon"})

        with pytest.raises(ValueError, match="command-max-wait-secs"):
            loader.build(config_path=str(tmp_path / "none.yaml"))

    def test_negative_running_timeout_rejected(self, tmp_path: Path) -> None:
        loader = ConfigLoader(environ={})

        with pytest.raises(ValueError, match="instance-running-timeout-secs"):
            loader.build(
                cli_values={"instance_running_timeout_secs": -1},
                config_path=str(tmp_path / "none.yaml"),
            )

    def test_pre_parsed_tag_specifications_become_json(self, tmp_path: Path) -> None:
        tags = [{"ResourceType": "instance", "Tags": [{"Key": "Name", "Value": "ci"}]}]

        config = ConfigLoader(environ={}).build(
            cli_values={"tag_specifications": tags}, config_path=str(tmp_path / "none.yaml")
        )

        assert config.tag_specifications == (
            '[{"ResourceType": "instance", "Tags": [{"Key": "Name", "Value": "ci"}]}]'
        )

    def test_pre_parsed_security_groups_are_joined(self, tmp_path: Path) -> None:
        config = ConfigLoader(environ={}).build(
            cli_values={"security_group_id": ("sg-1", "sg-2")},
            config_path=str(tmp_path / "none.yaml"),
        )

        assert config.security_group_id == "sg-1,sg-2"

    def test_user_data_whitespace_preserved(self, tmp_path: Path) -> None:
        script = "#!/bin/bash\necho hi\n"

        config = ConfigLoader(environ={"INPUT_USER-DATA": script}).build(
            config_path=str(tmp_path / "none.yaml")
        )

        assert config.user_data == script
