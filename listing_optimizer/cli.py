"""CLI tool for the Smartstore listing optimizer.

Usage:
    python -m listing_optimizer.cli score --file keywords.csv [--top 10] [--output scored.csv] [--save]
    python -m listing_optimizer.cli import --file keywords.csv [--project NAME]
    python -m listing_optimizer.cli list [--sort score] [--tags trending] [--page 2]
    python -m listing_optimizer.cli recommend --file keywords.csv [--count 10] [--diversity 0.3] [--seed 42]
    python -m listing_optimizer.cli titles --file keywords.csv --keywords "kw1,kw2" [--category ...]
    python -m listing_optimizer.cli categories --file keywords.csv [--keywords "kw1,kw2"] [--max 3]
    python -m listing_optimizer.cli checklist --file keywords.csv [--keywords "kw1,kw2"]
    python -m listing_optimizer.cli sample
"""
import argparse
import logging
import random
import sys

from listing_optimizer.config import Config
from listing_optimizer.errors import ListingOptimizerError, ValidationError
from listing_optimizer.store import SORT_FIELDS

logger = logging.getLogger(__name__)


def cmd_score(args, config):
    """Score every keyword in a CSV file."""
    from listing_optimizer.csv_io import export_keywords_csv
    from listing_optimizer.keyword_scoring import KeywordScorer

    keywords = _load_keywords(args.file)
    scored = KeywordScorer(config.algorithm_weights()).calculate_scores(keywords)
    ranked = sorted(scored, key=lambda k: k.score, reverse=True)

    print(f"📊 Scored {len(ranked)} keywords")
    for i, kw in enumerate(ranked[:args.top], 1):
        print(f"  {i:>2}. {kw.term:<20} {kw.score:6.2f}  "
              f"(volume {kw.volume}, competition {kw.competition:g})")

    if args.output:
        with open(args.output, "w", encoding="utf-8", newline="") as f:
            f.write(export_keywords_csv(ranked))
        print(f"\n💾 Saved to {args.output}")

    if args.save:
        store = _open_store(config)
        added, updated = store.sync_scores(ranked)
        print(f"\n💾 Scores stored ({store.backend}): {added} added, {updated} updated")


def cmd_import(args, config):
    """Store the keywords of a CSV file, optionally as a project."""
    keywords = _load_keywords(args.file)
    store = _open_store(config)
    ids = []
    added = 0
    for kw in keywords:
        try:
            ids.append(store.add_keyword(kw).id)
            added += 1
        except ValidationError as e:
            existing = store.find_keyword(kw.term)
            if existing is None:
                raise
            ids.append(existing.id)
            print(f"  ⏭️  {e}")

    print(f"💾 Stored {added} keywords ({store.backend}), {len(keywords) - added} already present")
    if args.project:
        project = store.create_project(args.project, args.description or "", ids)
        print(f"📁 Project {project.name} ({project.id}): {len(ids)} keywords")


def cmd_list(args, config):
    """List stored keywords with filters, sorting and pagination."""
    from listing_optimizer.store import KeywordFilter

    store = _open_store(config)
    filters = KeywordFilter(
        tags=_split(args.tags) or None,
        min_score=args.min_score,
        max_competition=args.max_competition,
        search=args.search,
    )
    page = store.list_keywords(filters, sort_by=args.sort, descending=not args.asc,
                               page=args.page, page_size=args.page_size)

    print(f"🗃️  {page.total} stored keywords (page {page.page}/{max(page.pages, 1)})")
    for kw in page.items:
        score = "-" if kw.score is None else f"{kw.score:6.2f}"
        print(f"  {kw.term:<20} {score:>6}  (volume {kw.volume}, competition {kw.competition:g})")


def cmd_recommend(args, config):
    """Recommend a diverse top-N keyword set."""
    from listing_optimizer.keyword_scoring import KeywordRecommender

    keywords = _load_keywords(args.file)
    rng = random.Random(args.seed) if args.seed is not None else None
    recommender = KeywordRecommender(config.algorithm_weights(), rng=rng)
    recs = recommender.recommend(keywords, count=args.count, diversity_factor=args.diversity)

    print(f"🎯 Top {len(recs)} keyword recommendations")
    for i, rec in enumerate(recs, 1):
        tags = ", ".join(t.value for t in rec.keyword.sorted_tags) or "-"
        print(f"  {i:>2}. {rec.keyword.term:<20} {rec.score:6.2f}  [{tags}]")
        print(f"      💡 {rec.reason}")


def cmd_titles(args, config):
    """Generate ranked product titles."""
    from listing_optimizer.models import ProductTitleComponents
    from listing_optimizer.title_generator import TitleGenerator

    keywords = _load_keywords(args.file)
    title_config = config.title_config()
    if args.max_length:
        title_config.max_length = args.max_length
    components = ProductTitleComponents(
        keywords=_split(args.keywords),
        category=args.category,
        demographic=args.demographic,
        features=_split(args.features),
        usage=args.usage,
    )
    titles = TitleGenerator(title_config).generate_titles(components, keywords)

    print(f"✏️  Generated {len(titles)} titles")
    for i, t in enumerate(titles, 1):
        print(f"  {i:>2}. [{t.score:5.1f}] {t.title_text} ({t.length}자)")
        if t.spacing_variants:
            print(f"      붙여쓰기: {t.spacing_variants.unspaced}")
        for issue in t.issues:
            print(f"      ⚠️ {issue}")


def cmd_categories(args, config):
    """Recommend marketplace categories."""
    from listing_optimizer.category_recommender import CategoryRecommender
    from listing_optimizer.keyword_scoring import KeywordScorer

    keywords = _select(_load_keywords(args.file), args.keywords)
    scored = KeywordScorer(config.algorithm_weights()).calculate_scores(keywords)
    recs = CategoryRecommender().recommend_categories(scored, max_suggestions=args.max)

    if not recs:
        print("🤷 No matching category")
        return
    print(f"🗂️  {len(recs)} category suggestions")
    for rec in recs:
        s = rec.suggestion
        print(f"\n  {s.name}: {s.confidence}%")
        for reason in s.reasons:
            print(f"    • {reason}")
        required = [a.name for a in s.attributes if a.required]
        if required:
            print(f"    📋 필수 속성: {', '.join(required)}")


def cmd_checklist(args, config):
    """Build the pre-listing checklist."""
    from listing_optimizer.category_recommender import CategoryRecommender
    from listing_optimizer.checklist import ChecklistGenerator
    from listing_optimizer.keyword_scoring import KeywordScorer
    from listing_optimizer.models import ProductTitleComponents
    from listing_optimizer.title_generator import TitleGenerator

    keywords = _select(_load_keywords(args.file), args.keywords)
    scored = KeywordScorer(config.algorithm_weights()).calculate_scores(keywords)
    top_terms = [k.term for k in sorted(scored, key=lambda k: k.score, reverse=True)]
    titles = TitleGenerator(config.title_config()).generate_titles(
        ProductTitleComponents(keywords=top_terms[:config.MAX_KEYWORDS]), scored,
    ) if scored else []
    categories = [r.suggestion for r in CategoryRecommender().recommend_categories(scored)]

    generator = ChecklistGenerator()
    result = generator.generate(scored, titles, categories)
    print(result.summary())
    suggestions = generator.improvement_suggestions(result)
    if suggestions:
        print()
        for s in suggestions:
            print(f"💡 {s}")


def cmd_sample(args, config):
    """Print a sample keyword CSV."""
    from listing_optimizer.csv_io import sample_csv
    print(sample_csv(), end="")


def _load_keywords(path):
    from listing_optimizer.csv_io import parse_keywords_csv

    with open(path, encoding="utf-8-sig") as f:
        result = parse_keywords_csv(f.read())
    if result.errors or result.warnings:
        print(result.summary(), file=sys.stderr)
    if not result.keywords:
        raise ListingOptimizerError(f"No valid keywords in {path}")
    return result.keywords


def _open_store(config):
    from listing_optimizer.store import KeywordStore

    store = KeywordStore(config.REDIS_URL)
    if store.backend == "memory":
        print("⚠️ Redis unavailable, stored keywords last only for this run", file=sys.stderr)
    return store


def _split(value):
    return [v.strip() for v in value.split(",") if v.strip()] if value else []


def _select(keywords, terms):
    """Restrict keywords to a comma-separated list of terms (all if empty)."""
    wanted = {t.lower() for t in _split(terms)}
    if not wanted:
        return keywords
    return [k for k in keywords if k.key in wanted]


def build_parser():
    parser = argparse.ArgumentParser(
        prog="listing-optimizer",
        description="Smartstore listing optimizer CLI: keyword scoring, titles and categories",
    )
    sub = parser.add_subparsers(dest="command", help="Command")

    # score
    p = sub.add_parser("score", help="Score keywords from a CSV file")
    p.add_argument("--file", "-f", required=True, help="Keyword CSV file")
    p.add_argument("--top", type=int, default=20, help="Rows to print")
    p.add_argument("--output", "-o", help="Save scored keywords to CSV")
    p.add_argument("--save", action="store_true", help="Store scores in the keyword store")

    # import
    p = sub.add_parser("import", help="Store keywords from a CSV file")
    p.add_argument("--file", "-f", required=True, help="Keyword CSV file")
    p.add_argument("--project", help="Create a project with the imported keywords")
    p.add_argument("--description", help="Project description")

    # list
    p = sub.add_parser("list", help="List stored keywords")
    p.add_argument("--sort", default="score", choices=SORT_FIELDS, help="Sort field")
    p.add_argument("--asc", action="store_true", help="Ascending order")
    p.add_argument("--tags", help="Any of these tags (comma-separated)")
    p.add_argument("--min-score", type=float, help="Minimum score")
    p.add_argument("--max-competition", type=float, help="Maximum competition")
    p.add_argument("--search", help="Substring of term or notes")
    p.add_argument("--page", type=int, default=1, help="Page number")
    p.add_argument("--page-size", type=int, default=20, help="Keywords per page")

    # recommend
    p = sub.add_parser("recommend", help="Recommend a diverse keyword set")
    p.add_argument("--file", "-f", required=True, help="Keyword CSV file")
    p.add_argument("--count", "-n", type=int, default=10, help="Number of keywords")
    p.add_argument("--diversity", type=float, default=0.3, help="Diversity factor (0-1)")
    p.add_argument("--seed", type=int, help="Random seed for reproducible picks")

    # titles
    p = sub.add_parser("titles", help="Generate product titles")
    p.add_argument("--file", "-f", required=True, help="Keyword CSV file")
    p.add_argument("--keywords", "-k", required=True, help="Keywords to use (comma-separated)")
    p.add_argument("--category", help="Category text")
    p.add_argument("--demographic", help="Target demographic")
    p.add_argument("--features", help="Features (comma-separated)")
    p.add_argument("--usage", help="Usage / occasion")
    p.add_argument("--max-length", type=int, help="Maximum title length")

    # categories
    p = sub.add_parser("categories", help="Recommend categories")
    p.add_argument("--file", "-f", required=True, help="Keyword CSV file")
    p.add_argument("--keywords", "-k", help="Restrict to these keywords (comma-separated)")
    p.add_argument("--max", type=int, default=3, help="Max suggestions")

    # checklist
    p = sub.add_parser("checklist", help="Pre-listing quality checklist")
    p.add_argument("--file", "-f", required=True, help="Keyword CSV file")
    p.add_argument("--keywords", "-k", help="Restrict to these keywords (comma-separated)")

    # sample
    sub.add_parser("sample", help="Print a sample keyword CSV")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "score": cmd_score,
        "import": cmd_import,
        "list": cmd_list,
        "recommend": cmd_recommend,
        "titles": cmd_titles,
        "categories": cmd_categories,
        "checklist": cmd_checklist,
        "sample": cmd_sample,
    }
    try:
        config = Config().validate()
        config.configure_logging()
        commands[args.command](args, config)
    except ListingOptimizerError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"❌ {e}")
        sys.exit(1)
    except OSError as e:
        print(f"❌ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
