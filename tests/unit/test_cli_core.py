from gee_dhis2.cli import parse_args


def test_parse_args_defaults():
    args = parse_args(["import"])
    assert args.command == "import"
    assert args.rule == "all"
    assert args.overlay_config_dir is None
    assert args.dry_run is False
    assert args.strict is False


def test_parse_args_accepts_rule_and_overlay_config_dir():
    args = parse_args(["import", "--rule", "weekly", "--overlay-config-dir", "config/live", "--dry-run"])
    assert args.rule == "weekly"
    assert args.overlay_config_dir == "config/live"
    assert args.dry_run is True
