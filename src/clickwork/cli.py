import logging
from importlib.metadata import PackageNotFoundError, version
from .args import parse_main_args
from .app import App, ActionResult
from .engine import ControlMode
from .world import ContentError, World, load_world, validate_world

def main() -> int:

    # Parse arguments
    args = parse_main_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    # Load world definition
    try:
        world: World = load_world(args.world)
    except ContentError as exc:
        print(f"WORLD LOAD FAILED\n{exc}")
        return 1
    issues = validate_world(world)
    if issues:
        issue_lines = "\n".join([f"- {issue}" for issue in issues])
        print(f"WORLD VALIDATION FAILED\nFile: {args.world}\n{issue_lines}")

    app = App(world, args.saves)

    print()
    print("**************************************************")
    print(world.game.title)
    print(f"Clickwork v{get_version()}")
    print("**************************************************")

    # Main loop
    while not app.engine.state.ending_shown:
        try:
            player_cmd_str = input("> ").strip()
        except EOFError:
            break
        if not player_cmd_str and app.engine.mode != ControlMode.DIALOG:
            continue
        if player_cmd_str.lower() in { "quit", "exit" }:
            break

        engine_response: ActionResult = app.handle_raw_command(player_cmd_str)
        if engine_response.message:
            print(engine_response.message)

    if app.engine.state.ending_shown:
        print("THE END. Thank you for playing!")
    return 0

def get_version() -> str:
    try:
        return version("clickwork")
    except PackageNotFoundError:
        return "dev"

if __name__ == "__main__":
    raise SystemExit(main())
