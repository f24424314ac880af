import argparse
import asyncio
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))


def load_env_file(path: str):
    if not path:
        return
    if path.lower().endswith(".json"):
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        for k, v in data.items():
            os.environ[str(k)] = str(v)
    else:
        # Fallback: simple KEY=VALUE per line
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                os.environ[k.strip()] = v.strip()


def format_table(rows: list[dict]) -> str:
    header = f"{'#':>3}  {'Team':<28} {'P':>3} {'W':>3} {'D':>3} {'L':>3} {'GF':>4} {'GA':>4} {'GD':>4} {'Pts':>4}  Form"
    lines = [header, "-" * len(header)]
    for r in rows:
        lines.append(
            f"{r['rank']:>3}  {r['team_name'][:28]:<28} {r['played']:>3} {r['wins']:>3} {r['draws']:>3} "
            f"{r['losses']:>3} {r['goals_for']:>4} {r['goals_against']:>4} {r['goal_difference']:>4} "
            f"{r['points']:>4}  {r['form']}"
        )
    return "\n".join(lines)


async def show_table(args) -> int:
    from competition.core.db import SessionLocal, init_db
    from competition.core.errors import CompetitionError
    from competition.data.store import SqlMatchResultStore, SqlTeamRegistry
    from competition.services.stage_router import StandingsRequest
    from competition.services.standings import StandingsQuery
    from competition.services.standings_cache import ReadThroughCache

    await init_db()
    async with SessionLocal() as s:
        query = StandingsQuery(SqlMatchResultStore(s), SqlTeamRegistry(s), cache=ReadThroughCache(), ttl_seconds=0)
        request = StandingsRequest(
            stage=args.stage,
            group=args.group,
            include_unpublished_finals=args.include_unpublished_finals,
            include_test=args.include_test,
            include_idle_teams=args.include_idle_teams,
        )
        try:
            result = await query.get_standings(request)
        except CompetitionError as e:
            print(f"error: {e.message}", file=sys.stderr)
            return 2
    payload = result.to_dict()
    if args.json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(format_table(payload["rows"]))
    return 0


async def publish_finals(args) -> int:
    from competition.core.db import SessionLocal, init_db
    from competition.data.store import SqlMatchResultStore
    from competition.services.publication import publish_pending_finals

    await init_db()
    async with SessionLocal() as s:
        result = await publish_pending_finals(SqlMatchResultStore(s), is_test=args.test)
    if result.nothing_to_publish:
        print("No finals pending publication")
        return 1
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0


def main():
    parser = argparse.ArgumentParser(description="Competition standings operator tools")
    parser.add_argument("--env-file", default="", help="KEY=VALUE or JSON file loaded into the environment first")
    sub = parser.add_subparsers(dest="command", required=True)

    table = sub.add_parser("table", help="Print the ranked standings table")
    table.add_argument("--stage", required=True, help="regular | mini_league | final")
    table.add_argument("--group", default=None, help="mini-league group key")
    table.add_argument("--include-unpublished-finals", action="store_true")
    table.add_argument("--include-test", action="store_true")
    table.add_argument("--include-idle-teams", action="store_true")
    table.add_argument("--json", action="store_true", help="print JSON instead of a text table")

    pub = sub.add_parser("publish-finals", help="Publish every pending final")
    pub.add_argument("--test", action="store_true", help="publish rehearsal finals instead of live ones")

    args = parser.parse_args()
    load_env_file(args.env_file)

    if args.command == "table":
        code = asyncio.run(show_table(args))
    else:
        code = asyncio.run(publish_finals(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
