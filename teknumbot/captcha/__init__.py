"""Join-captcha state kept in the in-memory cache."""