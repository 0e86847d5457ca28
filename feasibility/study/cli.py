import json
import logging
import sys

from feasibility.forecasting.assumptions import configuration_errors
from feasibility.forecasting.scenarios import run_scenarios
from feasibility.forecasting.sensitivity import analyze
from feasibility.study.calculator import calculate_detailed
from feasibility.study.model import PlantConfiguration
from feasibility.study.templates import apply_template
from feasibility.valuation.irr import describe_irr
from feasibility.valuation.payback import describe_payback

logger = logging.getLogger(__name__)

USAGE = "Usage: python -m feasibility.study.cli [--template ID] [--scenarios] [--sensitivity] [record.json]"


def _usage(message: str = "") -> None:
    if message:
        print(message, file=sys.stderr)
    print(USAGE)
    sys.exit(2)


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    template = None
    with_scenarios = with_sensitivity = False
    path = None
    while args:
        a = args.pop(0)
        if a == "--template":
            if not args:
                _usage("--template needs an id")
            template = args.pop(0)
        elif a == "--scenarios":
            with_scenarios = True
        elif a == "--sensitivity":
            with_sensitivity = True
        elif a.startswith("-"):
            _usage(f"unknown option {a}")
        elif path is None:
            path = a
        else:
            _usage("only one record file may be given")

    record = {}
    if path:
        try:
            with open(path) as f:
                record = json.load(f)
        except (OSError, ValueError) as e:
            _usage(f"cannot read {path}: {e}")
        if not isinstance(record, dict):
            _usage(f"{path} must hold a JSON object")
    if template:
        try:
            record = apply_template(template, record)
        except KeyError:
            _usage(f"unknown template {template}")

    config = PlantConfiguration.from_record(record)
    for problem in configuration_errors(config):
        logger.warning("configuration: %s", problem)
    calc = calculate_detailed(config)
    out = {
        "results": calc.results.to_record(),
        "net_profit": calc.net_profit,
        "payback": describe_payback(calc.results.payback_months),
        "irr": describe_irr(calc.irr),
    }
    if with_scenarios:
        out["scenarios"] = {k: v.to_record() for k, v in run_scenarios(config).items()}
    if with_sensitivity:
        out["sensitivity"] = analyze(config)
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    main()
