"""HTTP clients for services ledger-split depends on."""
