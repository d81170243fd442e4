import click
import json
import logging
import sqlalchemy.exc
from tabulate import tabulate
import traceback

from core.database.operations import init_db
from core.scrapers.errors import InvalidQuery, ScrapeFailure, UnsupportedRetailer
from core.scrapers.fashion_scraper import search_products
from core.scrapers.retailers import list_retailers
from core.scrapers.snapshot_scraper import SnapshotScraper
from core.scrapers.types import SearchCriteria

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("stylefinder-cli")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, verbose):
    """Style Finder backend tool."""
    # Store verbose flag in the Click context instead of a global variable
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")


@cli.command()
@click.pass_context
def init(ctx):
    """Initialize the database."""
    try:
        init_db()
    except sqlalchemy.exc.SQLAlchemyError as e:
        click.echo(f"Database error: {str(e)}")
        if ctx.obj["VERBOSE"]:
            click.echo(traceback.format_exc())
        ctx.exit(1)
    click.echo("Database initialized!")


@cli.command()
def retailers():
    """List the retailers product search supports."""
    rows = [[r.id, r.display_name, r.search_url_template] for r in list_retailers()]
    click.echo(tabulate(rows, headers=["Id", "Name", "Search URL"], tablefmt="grid"))


@cli.command()
@click.argument("query")
@click.option(
    "--brand",
    "-b",
    multiple=True,
    help="Only keep brands containing this text (can be specified multiple times)",
)
@click.option(
    "--exclude-brand",
    "-x",
    multiple=True,
    help="Drop brands containing this text (can be specified multiple times)",
)
@click.option("--min-price", type=click.FloatRange(min=0), help="Minimum price (inclusive)")
@click.option("--max-price", type=click.FloatRange(min=0), help="Maximum price (inclusive)")
@click.option("--retailer", "-r", default=None, help="Retailer id (default: asos)")
@click.option(
    "--html",
    "html_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Search a saved results page instead of the live site",
)
@click.option(
    "--format-type",
    "-f",
    type=click.Choice(["text", "table", "json"]),
    default="table",
    help="Output format (default: table)",
)
@click.option("--output", "-o", type=click.Path(), help="Save results to file")
@click.pass_context
def search(ctx, query, brand, exclude_brand, min_price, max_price, retailer, html_file, format_type, output):
    """Search a fashion retailer for products matching QUERY."""
    if min_price is not None and max_price is not None and min_price > max_price:
        raise click.BadParameter("Minimum price cannot be greater than maximum price", param_hint="--min-price")

    criteria = SearchCriteria.build(
        query=query,
        included_brands=brand,
        excluded_brands=exclude_brand,
        price_min=min_price,
        price_max=max_price,
    )

    try:
        if html_file:
            click.echo(f"Searching saved page {html_file} for: {query}")
            products = SnapshotScraper.from_file(html_file, retailer).scrape(criteria)
        else:
            click.echo(f"Searching {retailer or 'asos'} for: {query}")
            products = search_products(criteria, retailer)
    except (InvalidQuery, UnsupportedRetailer) as e:
        raise click.UsageError(str(e))
    except ScrapeFailure as e:
        click.echo(f"Search failed: {str(e)}")
        if ctx.obj["VERBOSE"]:
            click.echo(traceback.format_exc())
        ctx.exit(1)

    result_output = format_products(products, format_type)

    # Output to file or console
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(result_output)
        click.echo(f"Results written to {output}")
    else:
        click.echo("\n" + result_output)


def format_products(products, format_type):
    """Format products based on specified format type."""
    if format_type == "json":
        return json.dumps([p.to_dict() for p in products], indent=2, ensure_ascii=False)

    if not products:
        return "No matching products found."

    if format_type == "text":
        lines = [f"Found {len(products)} matching products:"]
        for i, product in enumerate(products, 1):
            lines.append(f"\n{i}. {product.name}")
            lines.append(f"   Brand: {product.brand}")
            lines.append(f"   Price: £{product.price:.2f}")
            lines.append(f"   Image: {product.image}")
            lines.append(f"   Link: {product.link}")
            if product.description:
                lines.append(f"   Description: {product.description}")
            if product.available_sizes:
                lines.append(f"   Sizes: {', '.join(product.available_sizes)}")
        return "\n".join(lines)

    # table format
    table_data = []
    for product in products:
        # Truncate name if too long
        name = product.name
        if len(name) > 40:
            name = name[:37] + "..."
        table_data.append([name, product.brand, f"£{product.price:.2f}", product.link])

    return tabulate(table_data, headers=["Product", "Brand", "Price", "Link"], tablefmt="grid")


if __name__ == "__main__":
    # This runs the Click application
    cli.main(obj={})
