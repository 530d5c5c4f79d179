"""
Collector registry for dynamic collector registration and CLI building.

This module provides the CollectorRegistry class that enables:
- Registration of collector types with their default enablement
- Dynamic building of the --collector.<name> flags
- Creation of the enabled collector instances for a run
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from gpfs_exporter.cli.collector_args import add_collector_timeout, add_collector_toggle


class CollectorRegistry:
    """Registry for collector types and their CLI configurations.

    Usage:
        # Register a collector
        CollectorRegistry.register(
            name='mmdf',
            collector_class=MmdfCollector,
            cli_builder=add_mmdf_arguments,
            description='GPFS capacity from mmdf'
        )

        # Build CLI arguments dynamically
        for name in CollectorRegistry.get_all_names():
            CollectorRegistry.build_cli_args(name, parser)

        # Instantiate what the command line enabled
        collectors = CollectorRegistry.create_collectors(
            CollectorRegistry.enabled_from_args(args), runner, args)
    """

    _collectors: Dict[str, Type] = {}
    _cli_builders: Dict[str, Callable] = {}
    _descriptions: Dict[str, str] = {}
    _default_enabled: Dict[str, bool] = {}

    @classmethod
    def register(cls, name: str, collector_class: Type,
                 cli_builder: Callable = None,
                 description: str = "",
                 default_enabled: Optional[bool] = None) -> None:
        """Register a collector type.

        Args:
            name: Unique collector name (e.g., 'mmdf').
            collector_class: Class implementing CollectorInterface.
            cli_builder: Function adding the collector's tuning flags.
            description: Help text for the enable flag. Defaults to the
                class description.
            default_enabled: Enabled without --collector.<name>. Defaults
                to the class attribute.
        """
        cls._collectors[name] = collector_class
        if cli_builder:
            cls._cli_builders[name] = cli_builder
        cls._descriptions[name] = description or getattr(collector_class, "description", "")
        if default_enabled is None:
            default_enabled = getattr(collector_class, "default_enabled", False)
        cls._default_enabled[name] = bool(default_enabled)

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._collectors.pop(name, None)
        cls._cli_builders.pop(name, None)
        cls._descriptions.pop(name, None)
        cls._default_enabled.pop(name, None)

    @classmethod
    def get_collector_class(cls, name: str) -> Type:
        """Get collector class by name.

        Raises:
            ValueError: If the collector is not registered.
        """
        if name not in cls._collectors:
            raise ValueError(f"Unknown collector type: {name}. "
                             f"Available types: {list(cls._collectors.keys())}")
        return cls._collectors[name]

    @classmethod
    def get_all_names(cls) -> List[str]:
        return list(cls._collectors.keys())

    @classmethod
    def get_description(cls, name: str) -> str:
        return cls._descriptions.get(name, "")

    @classmethod
    def get_default_enabled(cls) -> List[str]:
        """Names of the collectors enabled when no flag says otherwise."""
        return [name for name in cls._collectors if cls._default_enabled.get(name)]

    @classmethod
    def is_default_enabled(cls, name: str) -> bool:
        return cls._default_enabled.get(name, False)

    @classmethod
    def has_cli_builder(cls, name: str) -> bool:
        return name in cls._cli_builders

    @classmethod
    def build_cli_args(cls, name: str, parser, toggle: bool = True) -> None:
        """Add the flags of one collector.

        Args:
            name: Name of the collector.
            parser: Argparse parser to add arguments to.
            toggle: Also add --collector.<name>/--no-collector.<name>.
                Textfile exporters always run their one collector.
        """
        collector_class = cls.get_collector_class(name)
        if toggle:
            add_collector_toggle(parser, name, cls._default_enabled.get(name, False),
                                 cls._descriptions.get(name, ""))
        add_collector_timeout(parser, name, collector_class.default_timeout)
        if name in cls._cli_builders:
            cls._cli_builders[name](parser)

    @classmethod
    def enabled_from_args(cls, args) -> List[str]:
        """Collectors switched on after applying --collector.<name> flags."""
        enabled = []
        for name in cls._collectors:
            value = getattr(args, f"collector_{name}", None)
            if value is None:
                value = cls._default_enabled.get(name, False)
            if value:
                enabled.append(name)
        return enabled

    @classmethod
    def create_collectors(cls, names: Iterable[str], runner, options=None, logger=None) -> Dict[str, Any]:
        """Instantiate collectors by name, preserving registration order.

        Raises:
            ValueError: A name is not registered.
            ConfigurationError: A collector rejected its options.
        """
        wanted = set(names)
        for name in wanted:
            cls.get_collector_class(name)
        collectors = {}
        for name, collector_class in cls._collectors.items():
            if name in wanted:
                collectors[name] = collector_class(runner, options, logger)
        return collectors

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._collectors

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Useful for testing."""
        cls._collectors.clear()
        cls._cli_builders.clear()
        cls._descriptions.clear()
        cls._default_enabled.clear()

    @classmethod
    def get_registry_info(cls) -> Dict[str, Any]:
        return {
            name: {
                'class': cls._collectors[name].__name__,
                'has_cli_builder': name in cls._cli_builders,
                'description': cls._descriptions.get(name, ""),
                'default_enabled': cls._default_enabled.get(name, False),
            }
            for name in cls._collectors
        }
