"""Internal objects for gtpbridge."""
