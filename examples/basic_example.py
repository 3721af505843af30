#!/usr/bin/env python3
"""
Example script demonstrating the usage of BinderArgParser.

This script shows how options are synthesized from a plain class and a
dataclass, and how parsed values are bound back into new instances. Try:

    python basic_example.py --name demo -n 5 --verbose
    python basic_example.py --name demo --config settings.yaml
"""

from dataclasses import dataclass, field

from type_binder import BinderArgParser, Console


class SimulationConfig:
    """Configuration for simulation parameters.

    output_dir is a property: --output-dir has no default, so the class value
    stays unless the option is given.
    """

    output_dir: str = "/tmp/output"

    def __init__(
        self,
        name: str,
        temperature: float = 27.0,
        n: int = 100,
        verbose: bool = False,
    ) -> None:
        self.name = name
        self.temperature = temperature
        self.num_simulations = n
        self.verbose = verbose


@dataclass
class ProcessConfig:
    """Configuration for process parameters."""

    process_type: str = field(
        default="typeA", metadata={"help": "Type of processing to use"}
    )
    max_workers: int = field(
        default=4, metadata={"help": "Maximum number of worker processes"}
    )
    timeout: float = field(default=300.0, metadata={"help": "Timeout in seconds"})


class Report:
    """Bound with the console the invocation runs with."""

    def __init__(self, console: Console, verbose: bool = False) -> None:
        self.console = console
        self.verbose = verbose

    def print(self, sim: SimulationConfig, proc: ProcessConfig) -> None:
        self.console.write("Parsed Configuration:\n")
        self.console.write("-" * 30 + "\n")
        self.console.write(f"Simulation Name: {sim.name}\n")
        self.console.write(f"Temperature: {sim.temperature}°C\n")
        self.console.write(f"Number of Simulations: {sim.num_simulations}\n")
        self.console.write(f"Output Directory: {sim.output_dir}\n")
        if self.verbose:
            self.console.write(f"Process Type: {proc.process_type}\n")
            self.console.write(f"Max Workers: {proc.max_workers}\n")
            self.console.write(f"Timeout: {proc.timeout}s\n")


def main() -> None:
    """Main function demonstrating the parser."""
    parser = BinderArgParser(SimulationConfig, ProcessConfig, prog="simulate")

    print("BinderArgParser Example")
    print("=" * 50)
    print()

    sim_config = parser.bind(SimulationConfig)
    proc_config = parser.bind(ProcessConfig)
    parser.bind(Report).print(sim_config, proc_config)


if __name__ == "__main__":
    main()
