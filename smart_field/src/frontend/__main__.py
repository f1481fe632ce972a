from __future__ import annotations
import argparse, sys, json
from dictinput import SuggestionService, layer_field_table
from dictinput import config as CFG
from dictinput.ranker import Ranker

def _print_rows(sl) -> None:
    rows = sl.values()
    if not rows:
        print("(no suggestions)"); return
    print("#  Kind     Score     Value")
    exact = set(sl.exact)
    partial = dict(sl.partial)
    for i, v in enumerate(rows, 1):
        if i == len(rows) and sl.sentinel is not None:
            kind, score = "new", ""
        elif v in exact:
            kind, score = "exact", ""
        else:
            kind, score = "partial", f"{partial.get(v, 0.0):.4f}"
        print(f"{i:<2} {kind:<8} {score:<9} {v}")

def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Dictionary suggestions CLI")
    p.add_argument("--db", default=None, help='Store DSN: "sqlite:///path" or "memory://"')
    t = p.add_mutually_exclusive_group(required=True)
    t.add_argument("--table", default=None, help="Dictionary table key")
    t.add_argument("--layer-field", nargs=2, metavar=("LAYER", "FIELD"),
                   help="Use the shared table of a layer field")
    p.add_argument("--filter", default=None, help="Predicate (SQL expression for sqlite stores)")
    p.add_argument("--import", dest="import_file", default=None, help="CSV/TXT file of values to load")
    p.add_argument("--append", action="store_true", help="With --import: keep existing values")
    p.add_argument("--add", action="append", default=[], help="Commit a value (repeatable)")
    p.add_argument("--q", default=None, help="Single query to run once")
    p.add_argument("--repl", action="store_true", help="Interactive loop")
    p.add_argument("--list", action="store_true", help="Print the whole dictionary")
    p.add_argument("--export", default=None, metavar="PATH",
                   help="With --layer-field on a sqlite store: copy the layer's dictionaries to PATH")
    p.add_argument("--clear-on-select", action="store_true")
    p.add_argument("--dedupe-sentinel", action="store_true",
                   help="Do not repeat the typed text when it is already suggested")
    p.add_argument("--json", action="store_true", help="Emit JSON")
    p.add_argument("--verbose", action="store_true")

    args = p.parse_args(argv)

    if args.dedupe_sentinel:
        CFG.DEDUPE_SENTINEL = True
    table = args.table or layer_field_table(*args.layer_field)

    svc = SuggestionService(db_dsn=args.db, ranker=Ranker(dedupe_sentinel=CFG.DEDUPE_SENTINEL),
                            verbose=args.verbose)
    try:
        if args.import_file:
            n = svc.import_file(table, args.import_file, replace=not args.append)
            print(f"imported {n} values into {table}", file=sys.stderr)

        h = svc.open_session(table, args.filter, clear_on_select=args.clear_on_select)
        for v in args.add:
            svc.commit(h, v)

        def run_query(q: str):
            sl = svc.on_input(h, q)
            if args.json:
                print(json.dumps(sl.to_dict(), ensure_ascii=False, indent=2))
            else:
                _print_rows(sl)

        if args.list:
            sl = svc.show_all(h)
            if args.json:
                print(json.dumps(sl.to_dict(), ensure_ascii=False, indent=2))
            else:
                for v in sl.values():
                    print(v)

        if args.q:
            run_query(args.q)

        if args.export:
            if not args.layer_field:
                p.error("--export requires --layer-field")
            print(svc.export_layer(args.layer_field[0], args.export))

        if args.repl:
            print("Type a query (empty line to exit, '+value' to commit).")
            while True:
                try:
                    q = input("> ")
                except (EOFError, KeyboardInterrupt):
                    break
                if not q.strip():
                    break
                if q.startswith("+") and q[1:].strip():
                    svc.commit(h, q[1:].strip()); print("(saved)"); continue
                run_query(q)

        return 0
    finally:
        svc.shutdown()

if __name__ == "__main__":
    raise SystemExit(main())
