# Interior studio estimate service
