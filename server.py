"""
Crime Incidents Explorer
Web front end for the incident warehouse.
To run locally:
    python server.py
Go to http://localhost:8111 in your browser.

Connection details are read from db.properties (or the file named by
INCIDENT_DB_PROPERTIES) every time a query runs.
"""
import logging
import os
from datetime import date

from flask import Flask, request, render_template, redirect, abort, url_for, flash

from incident_explorer.criteria import DIMENSIONS
from incident_explorer.explorer import Explorer
from incident_explorer.gateway import Gateway
from incident_explorer.reports import REPORTS, SEARCH, TOP_BLOCKS, TOP_OFFENSES

logger = logging.getLogger(__name__)

tmpl_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')
app = Flask(__name__, template_folder=tmpl_dir)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret")

#
# One explorer per server process: the analyst's filter bar and result grid
# persist between page loads until reset.
#
explorer = Explorer(Gateway(os.environ.get("INCIDENT_DB_PROPERTIES")))

TOP_N_REPORTS = (TOP_BLOCKS, TOP_OFFENSES)


# helper functions
def parse_date(s):
    """YYYY-MM-DD -> date; blank means unbounded. Raises ValueError otherwise."""
    s = (s or "").strip()
    if not s:
        return None
    return date.fromisoformat(s)


def show_errors():
    for message in explorer.sink.pop_errors():
        flash(message, "error")


@app.route('/')
def index():
    """
    Filter bar, result grid and status line. While a query is running the page
    refreshes itself until the result arrives.
    """
    show_errors()
    sink = explorer.sink
    filters = explorer.filters

    return render_template(
        "index.html",
        dimensions=list(DIMENSIONS),
        options=explorer.dimension_options(),
        selections=filters.selections,
        summary=explorer.selection_summary(),
        from_date=filters.from_date,
        to_date=filters.to_date,
        reports=[r for r in REPORTS.values() if r.name != SEARCH],
        top_n_reports=TOP_N_REPORTS,
        title=sink.title,
        result=sink.result,
        series=sink.extra,
        status=sink.status,
        busy=sink.busy,
    )


@app.route('/search', methods=['POST'])
def search():
    try:
        from_date = parse_date(request.form.get("from_date"))
        to_date = parse_date(request.form.get("to_date"))
    except ValueError:
        flash("Dates must be given as YYYY-MM-DD.", "error")
        return redirect(url_for("index"))

    explorer.filters.set_dates(from_date, to_date)
    for dimension in DIMENSIONS:
        explorer.filters.select(dimension, request.form.getlist(dimension))

    explorer.search()
    return redirect(url_for("index"))


@app.route('/reset', methods=['POST'])
def reset():
    explorer.reset_filters()
    return redirect(url_for("index"))


@app.route('/reports/<name>', methods=['POST'])
def report(name):
    if name not in REPORTS or name == SEARCH:
        abort(404)

    if name in TOP_N_REPORTS:
        # a bad N is dropped by the catalog without running anything
        explorer.report(name, request.form.get("n", ""))
    else:
        explorer.report(name)
    return redirect(url_for("index"))


@app.route('/cancel', methods=['POST'])
def cancel():
    if explorer.runner.cancel():
        flash("Query cancelled.", "info")
    return redirect(url_for("index"))


if __name__ == "__main__":
    import click

    @click.command()
    @click.option('--debug', is_flag=True)
    @click.option('--threaded', is_flag=True)
    @click.argument('HOST', default='0.0.0.0')
    @click.argument('PORT', default=8111, type=int)
    def run(debug, threaded, host, port):
        """
        This function handles command line parameters.
        Run the server using:

            python server.py

        Show the help text using:

            python server.py --help

        """
        logging.basicConfig(
            level=logging.DEBUG if debug else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        HOST, PORT = host, port
        logger.info("running on %s:%d", HOST, PORT)
        app.run(host=HOST, port=PORT, debug=debug, threaded=threaded)

    run()
