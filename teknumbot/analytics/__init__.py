"""Message analytics: schema, records, storage, cached data and the HTTP API."""