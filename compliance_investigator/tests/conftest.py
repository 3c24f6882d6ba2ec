import pytest

PROFILE_HTML = '''
<html><body>
<div class="profile">
  <h1>Jane Doe</h1>
  <div class="field"><span>Date of Birth</span><span>1985-03-12</span></div>
  <div class="field"><div><label>Address</label></div><div>42 Harbour Street, Leeds</div></div>
  <div class="field"><span data-testid="email-label">Contact</span><span>jane@example.com</span></div>
  <dl><dt>Phone</dt><dd>+44 20 7946 0000</dd></dl>
  <div class="field"><span>Customer ID</span><span>CUST-0042</span></div>
  <div class="risk"><span>Risk Level</span><div>Current Level<span>medium Risk</span>Last assessment 2024-01-01</div></div>
</div>
<div class="card">
  <div class="card-header"><h3>Recent Transactions</h3></div>
  <div class="card-body">
    <div><span>2024-01-15</span><span>Best Buy</span><span>Electronics</span><span>$4500.00</span></div>
    <div><span>2024-01-18</span><span>Crypto Exchange</span><span>Transfer</span><span>$2500.00</span></div>
    <div><span>2024-01-22</span><span>Offshore Holdings</span><span>Wire</span><span>$15,000.00</span></div>
  </div>
</div>
<div class="card">
  <div class="card-header"><h3>Past Investigations</h3><p>History of compliance checks and alerts</p></div>
  <div class="card-body">
    <div><span>Unusual transaction volume</span><span>INV-2023-001</span><span>2023-11-15</span><span>closed</span></div>
    <div><span>Suspicious wire transfers</span><span>INV-2024-007</span><span>2024-02-03</span><span>open</span></div>
  </div>
</div>
</body></html>
'''

PROFILE_WITHOUT_SECTIONS_HTML = '''
<html><body>
<div class="profile">
  <h1>John Smith</h1>
  <div class="field"><span>DOB</span><span>1970-07-01</span></div>
  <div class="field"><span>Risk Rating</span><span>N/A</span></div>
</div>
</body></html>
'''


@pytest.fixture
def profile_html():
    return PROFILE_HTML


@pytest.fixture
def sparse_profile_html():
    return PROFILE_WITHOUT_SECTIONS_HTML
