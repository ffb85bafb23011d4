from flask import Blueprint

bp = Blueprint("feedback", __name__, template_folder="templates")

# Import submodules so their @bp.route decorators register
from . import routes    # dashboard, CSV export, watched content
from . import tags      # add/remove tag forms
