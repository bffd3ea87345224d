# Services
#
# Organized by domain:
#   - db/          Relational store (Supabase REST) and artifact status tracking
#   - providers/   External profile sources (GitHub, LinkedIn, Twitter, Whop)
#   - derivation/  Completion-based features and numeric stats
#   - matching/    Embeddings, vector store, upserts and ranking
#
# rate_limiter.py and batching.py are shared by every job
# enrichment.py and backfills.py sit at the root as orchestrators
