"""CiteSearch command line.

    citesearch ask "What changed in Python 3.13?"
    citesearch serve --port 8000
"""

import argparse
import asyncio
import sys

from citesearch.config import settings


async def run_query(query: str, max_sources: int | None = None) -> int:
    """Run both phases for one query and print the result."""
    from citesearch.agents.analysis import SourceAnalyzer
    from citesearch.agents.sourcing import SourceFinder
    from citesearch.services.deadline import Deadline

    print(f"Research query: {query}")
    print("-" * 50)

    print("\n[~] Finding sources...")
    sourced = await SourceFinder(max_sources=max_sources).find_sources(
        query, deadline=Deadline.after(settings.request_timeout_seconds)
    )
    if not sourced.sources:
        print("\n[!] No sources found for your query. Please try a different search.")
        return 1

    for i, source in enumerate(sourced.sources, 1):
        print(f"  [{i}] {source.description[:80]}")
        print(f"      {source.link}")

    print("\n[~] Analyzing sources...")
    cited = await SourceAnalyzer().analyze(
        query, sourced.sources, deadline=Deadline.after(settings.request_timeout_seconds)
    )

    print(f"\n{'='*50}")
    print("ANSWER:")
    print(f"{'='*50}")
    print(cited.answer)
    return 0


def serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run("citesearch.main:app", host=host, port=port, reload=reload)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="citesearch", description="CiteSearch research assistant")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Answer a question from the command line")
    ask.add_argument("query", help="Research query")
    ask.add_argument("--max-sources", "-n", type=int, help="Cap on sources to analyze")

    srv = sub.add_parser("serve", help="Run the HTTP API and web UI")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", "-p", type=int, default=8000)
    srv.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args(argv)

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
        return 0

    try:
        return asyncio.run(run_query(args.query, args.max_sources))
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        print(f"\n[!] Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
