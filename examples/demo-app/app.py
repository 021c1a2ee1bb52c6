"""Minimal Flask demo streaming service for CardPilot.

This app mimics the pages CardPilot drives on a real target:
  - Homepage with a cookie banner and a "Sign In" link
  - Two-step account login (email, then password after "Continue")
  - Billing page whose form posts to /api/billing/update via fetch

Run: python app.py
Then: cardpilot update-card demo --email viewer@example.com --dir .cardpilot
"""

from flask import Flask, jsonify, redirect, render_template_string, request, session, url_for

app = Flask(__name__)
app.secret_key = "cardpilot-demo-secret-key"

DEMO_ACCOUNTS = {"viewer@example.com": "correct horse"}

_LAYOUT = """<!doctype html>
<html><head><title>DemoFlix</title></head>
<body>
{% block body %}{% endblock %}
</body></html>"""

HOMEPAGE = _LAYOUT.replace("{% block body %}{% endblock %}", """
<div id="cookie-banner">
  We use cookies.
  <button id="onetrust-accept-btn-handler"
          onclick="document.getElementById('cookie-banner').remove()">Accept All</button>
</div>
<nav><a href="/browse/">Browse</a> <a href="{{ url_for('account') }}">Sign In</a></nav>
<h1>DemoFlix</h1>
""")

ACCOUNT = _LAYOUT.replace("{% block body %}{% endblock %}", """
<h1>Sign in</h1>
{% if error %}<p class="error">{{ error }}</p>{% endif %}
<form method="post" action="{{ url_for('account') }}">
  <input type="email" name="email" autocomplete="username">
  <button type="button" id="continue"
          onclick="document.getElementById('step2').style.display='block'; this.remove()">Continue</button>
  <div id="step2" style="display:none">
    <input type="password" name="password" autocomplete="current-password">
    <button type="submit">Sign In</button>
  </div>
</form>
""")

BILLING = _LAYOUT.replace("{% block body %}{% endblock %}", """
<h1>Payment method</h1>
<p>Card on file: {{ last4 or "none" }}</p>
<form id="billing">
  <input name="cardNumber" autocomplete="cc-number">
  <input name="expMonth" autocomplete="cc-exp-month">
  <input name="expYear" autocomplete="cc-exp-year">
  <input name="cvc" autocomplete="cc-csc">
  <input name="nameOnCard" autocomplete="cc-name">
  <input name="postalCode" autocomplete="postal-code">
  <button type="submit">Save Card</button>
</form>
<p id="result"></p>
<script>
document.getElementById("billing").addEventListener("submit", async (event) => {
  event.preventDefault();
  const body = Object.fromEntries(new FormData(event.target));
  const response = await fetch("/api/billing/update", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify(body),
  });
  document.getElementById("result").textContent = (await response.json()).status;
});
</script>
""")

BROWSE = _LAYOUT.replace("{% block body %}{% endblock %}", """
<h1>Welcome back, {{ email }}</h1>
<a href="{{ url_for('billing') }}">Billing</a>
""")


def _luhn_ok(number: str) -> bool:
    digits = [int(c) for c in number if c.isdigit()]
    if len(digits) < 12:
        return False
    total = 0
    for idx, n in enumerate(reversed(digits)):
        if idx % 2 == 1:
            n = n * 2 - 9 if n > 4 else n * 2
        total += n
    return total % 10 == 0


@app.route("/")
def homepage():
    """Landing page with cookie banner and sign-in link."""
    return render_template_string(HOMEPAGE)


@app.route("/account/", methods=["GET", "POST"])
def account():
    """Two-step sign-in form."""
    if request.method == "POST":
        email = request.form.get("email", "")
        password = request.form.get("password", "")
        if DEMO_ACCOUNTS.get(email) == password:
            session["email"] = email
            return redirect(url_for("browse"))
        return render_template_string(ACCOUNT, error="Incorrect email or password.")
    return render_template_string(ACCOUNT, error=None)


@app.route("/browse/")
def browse():
    if "email" not in session:
        return redirect(url_for("account"))
    return render_template_string(BROWSE, email=session["email"])


@app.route("/account/billing/")
def billing():
    """Billing form; requires a signed-in session."""
    if "email" not in session:
        return redirect(url_for("account"))
    return render_template_string(BILLING, last4=session.get("last4"))


@app.route("/api/billing/update", methods=["POST"])
def billing_update():
    """Accept a new card. 401 when signed out, 422 when the number is bad."""
    if "email" not in session:
        return jsonify(status="unauthorized"), 401
    data = request.get_json(silent=True) or {}
    number = str(data.get("cardNumber", ""))
    if not _luhn_ok(number):
        return jsonify(status="invalid card"), 422
    session["last4"] = number[-4:]
    return jsonify(status="updated", last4=session["last4"])


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=5000, debug=True)
