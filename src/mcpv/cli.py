# CLI interface for mcpv
import argparse
import logging
import sys
from pathlib import Path

from mcpv import __version__
from mcpv.errors import (
    AgentLookupError,
    AggregateAgentError,
    AlreadyInstalledError,
    DescriptorError,
    McpvError,
)
from mcpv.manager import ServerManager, parse_server_spec

# ABOUTME: Exit codes
# 0 = success, 1 = partial success, 2 = config error, 3 = fatal
EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_CONFIG_ERROR = 2
EXIT_FATAL = 3


def _manager(args: argparse.Namespace) -> ServerManager:
    return ServerManager(Path(args.project_dir).resolve())


def _prefer_local(args: argparse.Namespace) -> bool | None:
    # None lets each agent spec decide (non-global agents default to local)
    return False if getattr(args, "global_", False) else None


def cmd_init(args: argparse.Namespace) -> int:
    """Create mcpv.json with a default agent."""
    try:
        manager = _manager(args)
        manager.init_descriptor(args.agent, force=args.force)
    except (DescriptorError, AgentLookupError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except McpvError as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL

    print(f"Created {manager.descriptor_path} with default agent: {args.agent}")
    return EXIT_SUCCESS


def cmd_install(args: argparse.Namespace) -> int:
    """Execute install command.

    ABOUTME: No servers -> install everything in mcpv.json
    ABOUTME: server@version arguments require --repo
    """
    try:
        manager = _manager(args)

        if not args.servers:
            if not manager.descriptor_path.exists():
                print(f"No mcpv.json found in {manager.project_dir}. Use 'mcpv init' to create one.")
                return EXIT_CONFIG_ERROR
            results = manager.install_from_descriptor(args.agent, _prefer_local(args))
        else:
            if not args.repo:
                print("Installing specific servers requires a repository URL (--repo).")
                return EXIT_CONFIG_ERROR
            results = []
            for spec in args.servers:
                name, version = parse_server_spec(spec)
                try:
                    results.append(
                        manager.install_server(name, version, args.repo, args.agent, _prefer_local(args))
                    )
                except AlreadyInstalledError as e:
                    print(f"  {e}")

    except (DescriptorError, AgentLookupError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except McpvError as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL

    partial = False
    for result in results:
        server = result.installation
        state = "already installed" if result.already_installed else "installed"
        print(f"  {server.name}@{server.version} {state}")
        if result.agent_error:
            partial = True
            print(f"    Warning: {result.agent_error}")

    return EXIT_PARTIAL if partial else EXIT_SUCCESS


def cmd_remove(args: argparse.Namespace) -> int:
    """Remove server versions, their mcpv.json entries and agent registrations."""
    try:
        manager = _manager(args)
        partial = False
        for spec in args.servers:
            name, version = parse_server_spec(spec)
            result = manager.remove_server(name, version or None, args.agent)
            for removed in result.removed_versions:
                print(f"  Removed {name}@{removed}")
            if result.descriptor_entries:
                print(f"  Removed {result.descriptor_entries} entry(ies) of {name} from {manager.descriptor_path}")
            if result.agent_error:
                partial = True
                print(f"    Warning: {result.agent_error}")
    except (DescriptorError, AgentLookupError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except McpvError as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL

    return EXIT_PARTIAL if partial else EXIT_SUCCESS


def cmd_list(args: argparse.Namespace) -> int:
    """List installed servers, or the servers mcpv.json asks for.

    ABOUTME: Without --project/--installed the project view is used when mcpv.json exists
    """
    try:
        manager = _manager(args)
        show_project = args.project or (not args.installed and manager.descriptor_path.exists())
        if show_project:
            return _list_project(manager)
        servers = manager.list_installed()
    except DescriptorError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except McpvError as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL

    if not servers:
        print("No MCP servers installed.")
        return EXIT_SUCCESS

    for server in servers:
        print(f"  {server.name}@{server.version}  {server.install_path}")
    print()
    print(f"Total: {len(servers)} server(s)")
    return EXIT_SUCCESS


def _list_project(manager: ServerManager) -> int:
    rows = manager.project_status()
    if not rows:
        print("No servers configured in mcpv.json")
        return EXIT_SUCCESS

    print(f"Project servers (from {manager.descriptor_path}):")
    for entry, installed, path in rows:
        status = "Installed" if installed else "Not Installed"
        print(f"  {entry.name}@{path.name}  {entry.repository}  {status}  {path}")
    return EXIT_SUCCESS


def cmd_update(args: argparse.Namespace) -> int:
    """Update every mcpv.json server to its newest tag."""
    try:
        results = _manager(args).update_from_descriptor()
    except DescriptorError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except McpvError as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL

    if not results:
        print("No servers configured in mcpv.json")
        return EXIT_SUCCESS

    failed = 0
    for result in results:
        if result.status == "updated":
            print(f"  {result.name}: {result.from_version} -> {result.to_version}")
        elif result.status == "failed":
            failed += 1
            print(f"  {result.name}: failed ({result.error})")
        else:
            print(f"  {result.name}: {result.status}")

    return EXIT_PARTIAL if failed else EXIT_SUCCESS


def cmd_agents(args: argparse.Namespace) -> int:
    """Execute agents subcommands (list / add / remove)."""
    try:
        manager = _manager(args)

        if args.agents_command == "add":
            manager.register_with_agent(args.name, args.agent_type, prefer_local=_prefer_local(args))
            print(f"Added {args.name} to {args.agent_type} configuration")
            return EXIT_SUCCESS

        if args.agents_command == "remove":
            manager.unregister_from_agents(args.name, args.agent)
            print(f"Removed {args.name} from agent configurations")
            return EXIT_SUCCESS

        rows = manager.agent_configurations()
        if not rows:
            print("No supported AI agents detected.")
            return EXIT_SUCCESS
        print("Detected AI agents:")
        for agent_type, path, error in rows:
            print(f"  - {agent_type}: {path if path else 'Error: ' + error}")
        return EXIT_SUCCESS

    except AggregateAgentError as e:
        print(f"Error: {e}")
        return EXIT_PARTIAL
    except (DescriptorError, AgentLookupError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except McpvError as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpv",
        description="MCP server version manager"
    )
    parser.add_argument("--version", "-V", action="version", version=f"mcpv v{__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--project-dir", "-C",
        default=".",
        help="Directory containing mcpv.json (default: current directory)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init", help="Create mcpv.json")
    init_parser.add_argument("--agent", "-a", required=True, help="Default agent type")
    init_parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing mcpv.json")

    install_parser = subparsers.add_parser("install", aliases=["i"], help="Install MCP servers")
    install_parser.add_argument("servers", nargs="*", metavar="server[@version]")
    install_parser.add_argument("--repo", "-r", help="Repository URL for the server")
    install_parser.add_argument("--agent", "-a", help="Configure a specific agent only")
    install_parser.add_argument(
        "--global", "-g", dest="global_", action="store_true",
        help="Write the agent's global config instead of the project-level one"
    )

    remove_parser = subparsers.add_parser("remove", aliases=["rm"], help="Remove installed MCP servers")
    remove_parser.add_argument("servers", nargs="+", metavar="server[@version]")
    remove_parser.add_argument("--agent", "-a", help="Remove from a specific agent only")

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List installed or project servers")
    list_view = list_parser.add_mutually_exclusive_group()
    list_view.add_argument("--project", "-p", action="store_true", help="List servers required by mcpv.json")
    list_view.add_argument("--installed", "-i", action="store_true", help="List installed servers")
    subparsers.add_parser("update", help="Update servers in mcpv.json to their latest tags")

    agents_parser = subparsers.add_parser("agents", help="Manage AI agent configurations")
    agents_sub = agents_parser.add_subparsers(dest="agents_command")
    agents_sub.add_parser("list", help="List detected agents")
    agents_add = agents_sub.add_parser("add", help="Add an installed server to an agent")
    agents_add.add_argument("name")
    agents_add.add_argument("agent_type")
    agents_add.add_argument("--global", "-g", dest="global_", action="store_true")
    agents_remove = agents_sub.add_parser("remove", help="Remove a server from agent configurations")
    agents_remove.add_argument("name")
    agents_remove.add_argument("--agent", "-a", help="Remove from a specific agent only")

    return parser


COMMANDS = {
    "init": cmd_init,
    "install": cmd_install,
    "i": cmd_install,
    "remove": cmd_remove,
    "rm": cmd_remove,
    "list": cmd_list,
    "ls": cmd_list,
    "update": cmd_update,
    "agents": cmd_agents,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    ABOUTME: Parses args and dispatches to appropriate command
    ABOUTME: Returns exit code for sys.exit()
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        # No command specified, show help
        parser.print_help()
        return EXIT_SUCCESS
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
