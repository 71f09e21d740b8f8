def inject_theme() -> str:
    return """
<style>
:root {
  --paper: #fbfcfe;
  --wash: #eef4fb;
  --panel: rgba(255,255,255,0.8);
  --rule: rgba(15,23,42,0.10);
  --ink: #0f172a;
}
.stApp {
  background: linear-gradient(180deg, var(--wash) 0%, var(--paper) 38%);
  color: var(--ink);
}
.block-container {
  padding-top: 1rem;
  max-width: 1320px;
}
.hero {
  padding: 0.9rem 1.2rem;
  border: 1px solid var(--rule);
  border-radius: 14px;
  background: var(--panel);
  margin-bottom: 0.8rem;
}
.hero h2 { letter-spacing: -0.01em; }
.badge {
  display: inline-block;
  margin-right: 0.4rem;
  border-radius: 999px;
  padding: 0.12rem 0.6rem;
  font-size: 0.78rem;
  font-weight: 600;
  color: #ffffff;
}
[data-testid="stMetricValue"] { font-size: 1.25rem; }
@media (max-width: 900px) {
  .block-container { padding-top: 0.4rem; }
}
</style>
"""
